"""Scan, decrypt and unpack WeChat mini program packages."""

__version__ = "0.1.0"