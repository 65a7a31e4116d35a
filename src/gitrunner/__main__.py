"""Allow `python -m gitrunner`."""

from gitrunner.cli.main import main

if __name__ == "__main__":
    main()
