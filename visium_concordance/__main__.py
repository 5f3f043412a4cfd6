"""Allow ``python -m visium_concordance``."""

from .cli import main

if __name__ == "__main__":
    main()
