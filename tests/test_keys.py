# pylint: disable=missing-module-docstring,redefined-outer-name
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric import rsa
from pyasn1.codec.der import encoder
from pyasn1.error import PyAsn1Error
from pyasn1_modules import rfc8017
import pytest

import jsrsa.keys as rsau

standard_payload = "The quick brown fox jumps over the lazy dog1234567890!@#$%^&*()-_=+[{}];:\\|<>,./?~`'\"".encode()


@pytest.fixture(scope="module", params=[True, False])
def crt(request) -> bool:
    return request.param


def localize_keys(pk: rsa.RSAPrivateKey, crt: bool = True) -> tuple[rsau.RSAPubKey, rsau.RSAPrivKey]:
    privs = pk.private_numbers()
    pubs = pk.public_key().public_numbers()
    if crt:
        pkey = rsau.RSAPrivKey(pubs.n, pubs.e, privs.d, privs.p, privs.q, privs.dmp1, privs.dmq1, privs.iqmp)
    else:
        pkey = rsau.RSAPrivKey(pubs.n, pubs.e, privs.d)
    return rsau.RSAPubKey(pubs.n, pubs.e), pkey


def assert_pkeys_equal(jsrsa_key: rsau.RSAPrivKey, crypto_key: rsa.RSAPrivateKey) -> None:
    privs = crypto_key.private_numbers()
    pubs = crypto_key.public_key().public_numbers()
    assert jsrsa_key.pub.mod == pubs.n
    assert jsrsa_key.pub.expo == pubs.e
    assert jsrsa_key.expo == privs.d
    assert jsrsa_key.p == privs.p
    assert jsrsa_key.q == privs.q
    assert jsrsa_key.exp1 == privs.dmp1
    assert jsrsa_key.exp2 == privs.dmq1
    assert jsrsa_key.coeff == privs.iqmp


def faux_encrypt(pubkey: rsau.RSAPubKey, block: bytes) -> bytes:
    """Raw RSA over a hand-made block, bypassing the padding."""
    return rsau.integer_to_bytes(pubkey.c_rsa(rsau.bytes_to_integer(block)), pubkey.bsize)


def test_private_generation(mocker, keyset):
    pubs = keyset.public_key().public_numbers()
    privs = keyset.private_numbers()
    mocker.patch("jsrsa.keygen.generate_key_pair", return_value=(pubs.n, pubs.e, privs.d, privs.p, privs.q))
    reskey = rsau.RSAPrivKey.generate(keyset.key_size)
    assert_pkeys_equal(reskey, keyset)


def test_private_import_pkcs1(keyset):
    der = keyset.private_bytes(serialization.Encoding.DER, serialization.PrivateFormat.TraditionalOpenSSL,
                               serialization.NoEncryption())
    assert_pkeys_equal(rsau.RSAPrivKey.from_pkcs1(der), keyset)


def test_private_import_pkcs8(keyset):
    der = keyset.private_bytes(serialization.Encoding.DER, serialization.PrivateFormat.PKCS8,
                               serialization.NoEncryption())
    assert_pkeys_equal(rsau.RSAPrivKey.from_pkcs8(der), keyset)


def test_private_import_pkcs8_requires_rsa():
    der = ec.generate_private_key(ec.SECP256R1()).private_bytes(serialization.Encoding.DER,
                                                                serialization.PrivateFormat.PKCS8,
                                                                serialization.NoEncryption())
    with pytest.raises(ValueError, match="Private Key Algorithm not supported."):
        rsau.RSAPrivKey.from_pkcs8(der)


def test_private_import_validates(keyset):
    _, priv = localize_keys(keyset)
    broken = rsau.RSAPrivKey(priv.mod + 2, priv.pub.expo, priv.expo, priv.p, priv.q)
    with pytest.raises(ValueError, match="Modulus does not match"):
        rsau.RSAPrivKey.from_pkcs1(broken.to_pkcs1())
    with pytest.raises(ValueError, match="trailing bytes"):
        rsau.RSAPrivKey.from_pkcs1(priv.to_pkcs1() + b"\x00")
    with pytest.raises(PyAsn1Error):
        rsau.RSAPrivKey.from_pkcs1(priv.pub.to_pkcs1())


@pytest.mark.parametrize("numbers", [(6, 65537, -2, -3), (6, 1, 2, 3), (0, 65537, 0, 5)])
def test_private_import_range(numbers):
    mod, pub_exp, p, q = numbers
    keydata = rfc8017.RSAPrivateKey()
    keydata["version"] = 0
    keydata["modulus"] = mod
    keydata["publicExponent"] = pub_exp
    keydata["privateExponent"] = 5
    keydata["prime1"] = p
    keydata["prime2"] = q
    keydata["exponent1"] = 1
    keydata["exponent2"] = 1
    keydata["coefficient"] = 1
    with pytest.raises(ValueError, match="out of range"):
        rsau.RSAPrivKey.from_pkcs1(encoder.encode(keydata))


def test_public_import(keyset):
    pubs = keyset.public_key().public_numbers()
    spki = keyset.public_key().public_bytes(serialization.Encoding.DER,
                                            serialization.PublicFormat.SubjectPublicKeyInfo)
    pkcs1 = keyset.public_key().public_bytes(serialization.Encoding.DER, serialization.PublicFormat.PKCS1)
    expected = rsau.RSAPubKey(pubs.n, pubs.e)
    assert rsau.RSAPubKey.from_spki(spki) == expected
    assert rsau.RSAPubKey.from_pkcs1(pkcs1) == expected


def test_public_import_spki_requires_rsa():
    der = ec.generate_private_key(ec.SECP256R1()).public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)
    with pytest.raises(ValueError, match="is not RSA"):
        rsau.RSAPubKey.from_spki(der)


def test_private_export(keyset):
    _, key = localize_keys(keyset)
    interkey = serialization.load_der_private_key(key.to_pkcs1(), None)
    assert interkey.private_numbers() == keyset.private_numbers()


def test_private_export_noncrt(keyset):
    _, priv = localize_keys(keyset, crt=False)
    with pytest.raises(NotImplementedError):
        priv.to_pkcs1()


def test_public_export(keyset):
    pubs = keyset.public_key().public_numbers()
    key = rsau.RSAPubKey(pubs.n, pubs.e)
    assert serialization.load_der_public_key(key.to_spki()).public_numbers() == pubs
    assert serialization.load_der_public_key(key.to_pkcs1()).public_numbers() == pubs


def test_encrypt(keyset):
    pubkey, _ = localize_keys(keyset)
    ciphtext = pubkey.encrypt(standard_payload)
    assert len(ciphtext) == pubkey.bsize
    assert keyset.decrypt(ciphtext, padding.PKCS1v15()) == standard_payload


def test_encrypt_randomized(keyset):
    pubkey, _ = localize_keys(keyset)
    assert pubkey.encrypt(b"same") != pubkey.encrypt(b"same")


def test_encrypt_validates_length(keyset):
    pubkey, _ = localize_keys(keyset)
    pubkey.encrypt(b"A" * (pubkey.bsize - 11))
    with pytest.raises(ValueError, match="Message too long"):
        pubkey.encrypt(b"A" * (pubkey.bsize - 10))


def test_decrypt(keyset, crt):
    _, priv = localize_keys(keyset, crt=crt)
    ciphtext = keyset.public_key().encrypt(standard_payload, padding.PKCS1v15())
    assert priv.decrypt(ciphtext) == standard_payload


@pytest.mark.parametrize("payload", [b"", b"x", b"\x00\x00leading zeros"])
def test_encrypt_decrypt(keyset, crt, payload):
    pubkey, priv = localize_keys(keyset, crt)
    assert priv.decrypt(pubkey.encrypt(payload)) == payload


def test_decrypt_fails(mocker, keyset, crt):
    pubkey, priv = localize_keys(keyset, crt=crt)
    k = priv.bsize
    bad_blocks = [
        b"\x01\x02" + b"\xAA" * (k - 4) + b"\x00\x41",  # leading byte
        b"\x00\x01" + b"\xAA" * (k - 4) + b"\x00\x41",  # signature block type
        b"\x00\x02" + b"\xAA" * (k - 2),  # no separator
        b"\x00\x02" + b"\xAA" * 7 + b"\x00" + b"\x41" * (k - 10),  # padding string too short
    ]
    for block in bad_blocks:
        with pytest.raises(RuntimeError, match="Decryption error."):
            priv.decrypt(faux_encrypt(pubkey, block))
    with pytest.raises(RuntimeError, match="Decryption error."):
        priv.decrypt(pubkey.encrypt(b"short")[1:])
    with pytest.raises(RuntimeError, match="Decryption error."):
        priv.decrypt(rsau.integer_to_bytes(priv.mod, k))
    mocker.patch("jsrsa.keys.RSAPrivKey.c_rsa", side_effect=ValueError())
    with pytest.raises(RuntimeError, match="Decryption error."):
        priv.decrypt(pubkey.encrypt(b"short"))


def test_decrypt_minimum_padding(keyset):
    pubkey, priv = localize_keys(keyset)
    block = b"\x00\x02" + b"\xAA" * 8 + b"\x00" + b"\x41" * (priv.bsize - 11)
    assert priv.decrypt(faux_encrypt(pubkey, block)) == b"\x41" * (priv.bsize - 11)


def test_sign(keyset, crt):
    _, priv = localize_keys(keyset, crt=crt)
    signature = priv.sign(standard_payload)
    keyset.public_key().verify(signature, standard_payload, padding.PKCS1v15(), hashes.SHA256())


def test_sign_validates(keyset):
    tiny = rsau.RSAPrivKey(2**400 + 1, 65537, 3)
    with pytest.raises(ValueError, match="Hash function too large for current key."):
        tiny.sign(standard_payload)
    _, priv = localize_keys(keyset)
    assert len(priv.sign(b"")) == priv.bsize


def test_verify(keyset):
    pubkey, _ = localize_keys(keyset)
    signature = keyset.sign(standard_payload, padding.PKCS1v15(), hashes.SHA256())
    assert pubkey.verify(standard_payload, signature)


def test_verify_mismatch_fails(keyset):
    pubkey, priv = localize_keys(keyset)
    signature = priv.sign(standard_payload)
    assert not pubkey.verify(b"NONSTANDARDPAYLOAD", signature)
    tampered = bytes([signature[0] ^ 0x01]) + signature[1:]
    assert not pubkey.verify(standard_payload, tampered)


def test_verify_other_hash_fails(keyset):
    pubkey, _ = localize_keys(keyset)
    signature = keyset.sign(standard_payload, padding.PKCS1v15(), hashes.SHA384())
    assert not pubkey.verify(standard_payload, signature)


def test_verify_padding_fails(keyset):
    pubkey, priv = localize_keys(keyset)

    def faux_sign(block):
        return rsau.integer_to_bytes(priv.c_rsa(rsau.bytes_to_integer(block)), priv.bsize)

    digest_info = rsau.sha256_digest_info(standard_payload)
    assert not pubkey.verify(standard_payload, faux_sign(b"\x00\x02" + b"\xff" * (priv.bsize - 2)))
    assert not pubkey.verify(standard_payload, faux_sign(b"\x00\x01" + b"\xff" * (priv.bsize - 2)))
    short_ps = b"\x00\x01\xff\xff\xff\x00" + digest_info
    assert not pubkey.verify(standard_payload, faux_sign(short_ps + b"\x00" * (priv.bsize - len(short_ps))))


def test_verify_validates_length(keyset):
    pubkey, priv = localize_keys(keyset)
    signature = priv.sign(standard_payload)
    with pytest.raises(ValueError, match="Signature must be"):
        pubkey.verify(standard_payload, signature[1:])
    with pytest.raises(ValueError, match="Signature must be"):
        pubkey.verify(standard_payload, signature + b"\x00")
    assert not pubkey.verify(standard_payload, rsau.integer_to_bytes(pubkey.mod, pubkey.bsize))


def test_cryptography_rejects_forged_padding(keyset):
    # Sanity check of the reference: our hand-made bad blocks are also invalid for cryptography.
    pubkey, priv = localize_keys(keyset)
    block = b"\x00\x02" + b"\xff" * (priv.bsize - 2)
    forged = rsau.integer_to_bytes(priv.c_rsa(rsau.bytes_to_integer(block)), priv.bsize)
    with pytest.raises(InvalidSignature):
        keyset.public_key().verify(forged, standard_payload, padding.PKCS1v15(), hashes.SHA256())
    assert not pubkey.verify(standard_payload, forged)


@pytest.mark.parametrize("flow", [-1, 1])
def test_overflow_underflow_c_rsa(keyset, flow):
    pubkey, priv = localize_keys(keyset)
    with pytest.raises(ValueError):
        priv.c_rsa(priv.mod * flow)
    with pytest.raises(ValueError):
        pubkey.c_rsa(pubkey.mod * flow)


def test_public_key_equality(keyset):
    pubkey, priv = localize_keys(keyset)
    assert pubkey == priv.pub
    assert hash(pubkey) == hash(priv.pub)
    assert pubkey != rsau.RSAPubKey(pubkey.mod, 3)
