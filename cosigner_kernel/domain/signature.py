"""
Signature -- digest construction, signer recovery and authorization checks.

Responsibility:
    Rebuilds the digest a delegate signed, recovers the signer and decides
    whether the authorization may be used right now.

Architecture position:
    Kernel > Domain -- pure apart from the cryptographic primitive, which
    sits behind the ``SignatureVerifier`` protocol so tests and alternative
    schemes can swap it without touching the liability state machine.

Digest:
    keccak256(abi.encodePacked(address registry, uint256 loan_id,
    uint128 cost, uint16 coverage, uint64 required_arrears,
    uint64 expiration)).  The registry address acts as a domain separator:
    an authorization for one registry cannot be replayed on another.

    Delegates sign the digest with the Ethereum signed-message convention
    (EIP-191 version 0x45), so recovery hashes
    ``"\\x19Ethereum Signed Message:\\n32" + digest`` first.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from eth_abi.packed import encode_packed
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import ValidationError, keccak

from cosigner_kernel.domain.addresses import NULL_ADDRESS, to_address
from cosigner_kernel.domain.authorization import (
    Authorization,
    CosignerData,
    Signature,
    encode_data,
)
from cosigner_kernel.exceptions import (
    AuthorizationExpiredError,
    FieldOutOfRangeError,
    InvalidSignatureError,
    NotDelegateError,
)

_DIGEST_TYPES = ["address", "uint256", "uint128", "uint16", "uint64", "uint64"]


def compute_digest(
    registry: str,
    loan_id: int,
    cost: int,
    coverage: int,
    required_arrears: int,
    expiration: int,
) -> bytes:
    """
    Hash the six authorization fields in order.

    Raises:
        FieldOutOfRangeError: If loan_id or a data field is out of range.
    """
    if loan_id < 0 or loan_id >= 1 << 256:
        raise FieldOutOfRangeError("loan_id", loan_id, 256)
    # Same width checks as the wire format
    encode_data(cost, coverage, required_arrears, expiration)
    packed = encode_packed(
        _DIGEST_TYPES,
        [to_address(registry), loan_id, cost, coverage, required_arrears, expiration],
    )
    return keccak(packed)


@runtime_checkable
class SignatureVerifier(Protocol):
    """Recovers the address that produced ``signature`` over ``digest``."""

    def recover(self, digest: bytes, signature: Signature) -> str:
        """Return the checksummed signer.

        Raises:
            InvalidSignatureError: When recovery fails or yields the zero
                address.
        """
        ...


class EthereumSignatureVerifier:
    """secp256k1 recovery of Ethereum signed-message signatures."""

    def recover(self, digest: bytes, signature: Signature) -> str:
        message = encode_defunct(primitive=digest)
        try:
            signer = Account.recover_message(
                message, vrs=(signature.v, signature.r, signature.s)
            )
        except (BadSignature, KeyValidationError, ValidationError, ValueError) as exc:
            raise InvalidSignatureError(str(exc) or type(exc).__name__) from exc
        signer = to_address(signer)
        if signer == NULL_ADDRESS:
            raise InvalidSignatureError("recovered the zero address")
        return signer


def sign_digest(private_key: str | bytes, digest: bytes) -> Signature:
    """Sign ``digest`` as a delegate would, for off-chain tooling and tests."""
    signed = Account.sign_message(encode_defunct(primitive=digest), private_key)
    return Signature(
        v=signed.v,
        r=signed.r.to_bytes(32, "big"),
        s=signed.s.to_bytes(32, "big"),
    )


def sign_authorization(
    private_key: str | bytes,
    registry: str,
    loan_id: int,
    data: CosignerData,
) -> bytes:
    """Build a complete 99-byte authorization signed by ``private_key``."""
    digest = compute_digest(
        registry,
        loan_id,
        data.cost,
        data.coverage,
        data.required_arrears,
        data.expiration,
    )
    return Authorization(data=data, signature=sign_digest(private_key, digest)).to_bytes()


def authorize(
    registry: str,
    loan_id: int,
    data: CosignerData,
    signature: Signature,
    *,
    verifier: SignatureVerifier,
    is_delegate: Callable[[str], bool],
    now: int,
) -> str:
    """
    Recover the signer of an authorization and check it may be used.

    Returns:
        The checksummed delegate address that signed.

    Raises:
        InvalidSignatureError: Recovery failed.
        NotDelegateError: Signer is not an active delegate.
        AuthorizationExpiredError: ``data.expiration <= now``.
    """
    digest = compute_digest(
        registry,
        loan_id,
        data.cost,
        data.coverage,
        data.required_arrears,
        data.expiration,
    )
    signer = verifier.recover(digest, signature)
    if not is_delegate(signer):
        raise NotDelegateError(signer)
    if data.expiration <= now:
        raise AuthorizationExpiredError(data.expiration, now)
    return signer
