"""Configures pytest further and provides the reference keys shared by the test modules."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pathlib

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

DATA = pathlib.Path(__file__).parent / "tests" / "data"
REFERENCE_SIZES = [1024, 2048]


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extreme value extremely slow tests")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    if not skipdict:
        return
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


@pytest.fixture(scope="session")
def reference_keys() -> dict[int, rsa.RSAPrivateKey]:
    """Keys generated by `cryptography`, serving as the independent implementation to check against."""
    return {size: rsa.generate_private_key(public_exponent=65537, key_size=size) for size in REFERENCE_SIZES}


@pytest.fixture(scope="session", params=REFERENCE_SIZES)
def keyset(request, reference_keys) -> rsa.RSAPrivateKey:
    return reference_keys[request.param]


def _pem_variants(key: rsa.RSAPrivateKey) -> dict[str, str]:
    nocrypt = serialization.NoEncryption()
    pub = key.public_key()
    return {
        "RSA PRIVATE KEY":
            key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.TraditionalOpenSSL,
                              nocrypt).decode("ascii"),
        "PRIVATE KEY":
            key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, nocrypt).decode("ascii"),
        "PUBLIC KEY":
            pub.public_bytes(serialization.Encoding.PEM,
                             serialization.PublicFormat.SubjectPublicKeyInfo).decode("ascii"),
        "RSA PUBLIC KEY":
            pub.public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.PKCS1).decode("ascii"),
    }


@pytest.fixture(scope="session")
def pem_variants():
    """Builds the four accepted PEM encodings of a key, keyed by their label."""
    return _pem_variants


@pytest.fixture(scope="session")
def simple_pems() -> tuple[str, str]:
    """A fixed 2048-bit PKCS#1 private key and its X.509 public key."""
    return (DATA / "simple_2048").read_text(encoding="ascii"), (DATA / "simple_2048.pub").read_text(encoding="ascii")
