import os
import sys

# Inject the geo-crawler directory into sys.path
# This makes the sibling packages (crawler, frontier, playbook, engine, evaluation, rewriting) resolvable.
sys.path.append(os.path.join(os.path.dirname(__file__), "geo-crawler"))

from crawler.cli import main

if __name__ == "__main__":
    sys.exit(main())
