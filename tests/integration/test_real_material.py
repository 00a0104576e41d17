"""
Integration tests with real key and certificate material.

Generates an RSA key and a self-signed certificate with cryptography (PyCA),
serializes them to PEM exactly as OpenSSL tooling would, and checks that the
loader recovers byte-identical DER.
"""

from __future__ import annotations

import datetime
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from pem_loader.domain.models import DerObject, FilterVerdict, ObjectKind
from pem_loader.loader import load, load_by_kind_mask, release
from pem_loader.railway import ErrorCode, ResultAssertions

# ─────────────────────── Fixtures ───────────────────────


@pytest.fixture(scope="module")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def certificate(rsa_key: rsa.RSAPrivateKey) -> x509.Certificate:
    """Self-signed certificate for CN=pem-loader.test."""
    name = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "ES"),
        x509.NameAttribute(NameOID.COMMON_NAME, "pem-loader.test"),
    ])
    now = datetime.datetime.now(datetime.UTC)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(rsa_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(rsa_key, hashes.SHA256())
    )


def _pkcs8_pem(key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> bytes:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def _pkcs8_der(key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> bytes:
    return key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@pytest.fixture(scope="module")
def chain_file(
    tmp_path_factory: pytest.TempPathFactory,
    certificate: x509.Certificate,
    rsa_key: rsa.RSAPrivateKey,
) -> Path:
    """A file holding a certificate, a PKCS#8 key and a PKCS#1 RSA key, with comments."""
    traditional = rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    path = tmp_path_factory.mktemp("pem") / "chain.pem"
    path.write_bytes(
        b"subject=CN=pem-loader.test\n"
        + certificate.public_bytes(serialization.Encoding.PEM)
        + b"\n# PKCS#8\n"
        + _pkcs8_pem(rsa_key)
        + b"\n# PKCS#1\n"
        + traditional
    )
    return path


# ─────────────────────── Tests ───────────────────────


class TestRealMaterial:
    """Loader output matches cryptography's own DER encodings."""

    def test_all_objects_decode_to_expected_der(
        self,
        chain_file: Path,
        certificate: x509.Certificate,
        rsa_key: rsa.RSAPrivateKey,
    ) -> None:
        """
        GIVEN a chain file with certificate, PKCS#8 key and PKCS#1 key
        WHEN loaded
        THEN each payload equals cryptography's DER encoding of the same object.
        """
        pkcs1_der = rsa_key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )
        collection = ResultAssertions.assert_success(load(chain_file))
        assert collection.objects == (
            DerObject(ObjectKind.CERTIFICATE, certificate.public_bytes(serialization.Encoding.DER)),
            DerObject(ObjectKind.PRIVATE_KEY, _pkcs8_der(rsa_key)),
            DerObject(ObjectKind.RSA_PRIVATE_KEY, pkcs1_der),
        )
        assert collection.total_kept_bytes == sum(o.length for o in collection)
        release(collection)

    def test_certificate_payload_parses_back(self, chain_file: Path, certificate: x509.Certificate) -> None:
        """
        GIVEN the chain file
        WHEN certificates only are loaded and the payload is parsed as X.509
        THEN the subject and serial match the generated certificate.
        """
        collection = ResultAssertions.assert_success(load_by_kind_mask(chain_file, ObjectKind.CERTIFICATE))
        assert len(collection) == 1
        parsed = x509.load_der_x509_certificate(collection.objects[0].payload)
        assert parsed.subject == certificate.subject
        assert parsed.serial_number == certificate.serial_number

    def test_ec_key_in_pkcs8_is_private_key_kind(self) -> None:
        """
        GIVEN an EC key serialized as PKCS#8 and passed inline
        WHEN loaded
        THEN it is reported as PRIVATE_KEY with the PKCS#8 DER payload.
        """
        key = ec.generate_private_key(ec.SECP256R1())
        collection = ResultAssertions.assert_success(load(_pkcs8_pem(key).decode("ascii")))
        assert collection.objects == (DerObject(ObjectKind.PRIVATE_KEY, _pkcs8_der(key)),)

    def test_stop_at_first_key(self, chain_file: Path, rsa_key: rsa.RSAPrivateKey) -> None:
        """
        GIVEN a filter stopping at the first key of any kind
        WHEN the chain file is loaded
        THEN only the PKCS#8 key is returned.
        """

        def first_key(obj: DerObject) -> FilterVerdict:
            if obj.kind is ObjectKind.CERTIFICATE:
                return FilterVerdict.REJECT
            return FilterVerdict.ACCEPT_AND_STOP

        collection = ResultAssertions.assert_success(load(chain_file, first_key))
        assert collection.objects == (DerObject(ObjectKind.PRIVATE_KEY, _pkcs8_der(rsa_key)),)

    def test_truncated_certificate_fails(self, tmp_path: Path, certificate: x509.Certificate) -> None:
        """
        GIVEN a certificate PEM with its end marker cut off
        WHEN loaded
        THEN MALFORMED_ENVELOPE is returned.
        """
        pem = certificate.public_bytes(serialization.Encoding.PEM)
        path = tmp_path / "cut.pem"
        path.write_bytes(pem.replace(b"-----END CERTIFICATE-----\n", b""))
        ResultAssertions.assert_failure(load(path), ErrorCode.MALFORMED_ENVELOPE)
