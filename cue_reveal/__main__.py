"""Package entry point for ``python -m cue_reveal``.

WHY: Users run the simulator as ``python -m cue_reveal chapter.txt``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from cue_reveal.cli import main

if __name__ == "__main__":
    main()
