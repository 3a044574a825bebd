"""Allow running as `python -m storefront_server`."""

from .cli import main

if __name__ == "__main__":
    main()
