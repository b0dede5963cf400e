"""nbpackages launcher: python app.py [--python PATH]"""

import sys

from nbpackages.app import main


if __name__ == "__main__":
    sys.exit(main())
