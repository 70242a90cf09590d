"""Allow ``python -m awardlens``."""

from awardlens.run import main

if __name__ == "__main__":
    main()
