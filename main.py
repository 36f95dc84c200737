"""Main entry point for medication tracker."""

from medtracker.main import run

if __name__ == "__main__":
    run()
