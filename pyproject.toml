[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cosmoscore"
version = "0.1.0"
description = "Transaction parsing, address derivation and APDU handling for Cosmos signing devices"
requires-python = ">=3.10"
keywords = ["cosmos", "bech32", "secp256k1", "apdu", "json", "cbor", "signing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "pycryptodome",
    "cbor2",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cosmoscore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
