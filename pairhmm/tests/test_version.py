from importlib.metadata import version

from pairhmm import __version__


def test_version():
    assert __version__ == version("pairhmm")
