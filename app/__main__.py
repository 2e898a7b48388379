"""Schema service CLI interface."""

from app.cli import main

if __name__ == "__main__":
    main()
