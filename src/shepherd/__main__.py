"""Main entry point for the shepherd package."""

from shepherd.growth.cli import main


if __name__ == "__main__":
    main()
