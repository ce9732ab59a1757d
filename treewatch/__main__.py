"""Allow ``python -m treewatch``."""

from treewatch.cli import main

main()
