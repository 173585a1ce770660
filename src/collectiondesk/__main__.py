"""Entry point for 'python -m collectiondesk'."""

from collectiondesk.cli import main

if __name__ == "__main__":
    main()
