import os
import sys

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))
SRC_DIR = os.path.join(ROOT_DIR, "src")
# an editable install may already list src, but it must come before this
# script's own directory or "ogg_to_mp3" resolves to this file
if SRC_DIR in sys.path:
    sys.path.remove(SRC_DIR)
sys.path.insert(0, SRC_DIR)

from ogg_to_mp3.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
