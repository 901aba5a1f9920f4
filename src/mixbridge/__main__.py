"""Allow ``python -m mixbridge``."""

from mixbridge.cli import main

if __name__ == "__main__":
    main()
