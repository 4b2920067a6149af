import pytest

from interactions_gateway.discord_utils import SignatureVerifier, verify_discord_signature


def _flip_hex(value: str, index: int = 0) -> str:
    raw = bytearray(bytes.fromhex(value))
    raw[index] ^= 0x01
    return raw.hex()


def test_valid_signature_verifies(public_key, sign):
    headers, body = sign({'type': 1})
    verifier = SignatureVerifier(public_key)

    assert verifier.verify(headers['X-Signature-Ed25519'], headers['X-Signature-Timestamp'], body) is True


def test_str_body_is_accepted(public_key, sign):
    headers, body = sign('{"type": 1}')

    assert verify_discord_signature(
        headers['X-Signature-Ed25519'], headers['X-Signature-Timestamp'], body.decode(), public_key
    ) is True


def test_flipped_signature_bit_fails(public_key, sign):
    headers, body = sign({'type': 1})

    assert SignatureVerifier(public_key).verify(
        _flip_hex(headers['X-Signature-Ed25519'], 10), headers['X-Signature-Timestamp'], body
    ) is False


def test_changed_timestamp_fails(public_key, sign):
    headers, body = sign({'type': 1}, timestamp='1700000000')

    assert SignatureVerifier(public_key).verify(headers['X-Signature-Ed25519'], '1700000001', body) is False


def test_flipped_body_bit_fails(public_key, sign):
    headers, body = sign({'type': 1})
    tampered = bytearray(body)
    tampered[-1] ^= 0x01

    assert SignatureVerifier(public_key).verify(
        headers['X-Signature-Ed25519'], headers['X-Signature-Timestamp'], bytes(tampered)
    ) is False


@pytest.mark.parametrize('signature,timestamp,body', [
    (None, '1700000000', b'{}'),
    ('', '1700000000', b'{}'),
    ('ab' * 64, None, b'{}'),
    ('ab' * 64, '', b'{}'),
    ('ab' * 64, '1700000000', None),
    ('ab' * 64, '1700000000', b''),
])
def test_missing_inputs_fail_closed(public_key, signature, timestamp, body):
    assert SignatureVerifier(public_key).verify(signature, timestamp, body) is False


@pytest.mark.parametrize('signature', ['not-hex', 'abc', 'ab' * 10, 'ab' * 65])
def test_malformed_signature_is_rejected_without_raising(public_key, signature):
    assert SignatureVerifier(public_key).verify(signature, '1700000000', b'{}') is False


@pytest.mark.parametrize('key', [None, '', 'zz', 'ab' * 10])
def test_bad_public_key_rejects_everything(sign, key):
    headers, body = sign({'type': 1})

    assert SignatureVerifier(key).verify(
        headers['X-Signature-Ed25519'], headers['X-Signature-Timestamp'], body
    ) is False


def test_signature_from_another_key_fails(sign):
    from nacl.signing import SigningKey

    other = SigningKey.generate().verify_key.encode().hex()
    headers, body = sign({'type': 1})

    assert SignatureVerifier(other).verify(
        headers['X-Signature-Ed25519'], headers['X-Signature-Timestamp'], body
    ) is False
