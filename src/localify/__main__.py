"""Allow `python -m localify`."""

from localify.main import run

if __name__ == "__main__":
    run()
