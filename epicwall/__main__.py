"""
__main__.py

This file adds support for running epicwall as a python module instead of invoking the "epicwall" command line entrypoint:

    $ python -m epicwall 1920x1080

See https://docs.python.org/3/using/cmdline.html#cmdoption-m
"""


from epicwall.cli import main


if __name__ == "__main__":
    main()
