import sys

from performance_analyzer.cli import main

if __name__ == "__main__":
    sys.exit(main())
