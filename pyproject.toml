[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wxapkg"
version = "0.1.0"
description = "Scan, decrypt and unpack WeChat mini program packages"
requires-python = ">=3.10"
keywords = ["wechat", "mini-program", "wxapkg", "unpack", "decrypt", "beautify"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
    "Topic :: Utilities",
]
dependencies = [
    "beautifulsoup4",
    "cryptography",
    "rich",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
wxapkg = "wxapkg.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["wxapkg"]

[tool.pytest.ini_options]
addopts = "-ra"
