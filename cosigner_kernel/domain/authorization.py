"""
Authorization -- codec for the signed cosign authorization blob.

Responsibility:
    Packs and unpacks the fixed-width payload a delegate signs off-chain:

        offset  size  field
        0       16    cost              uint128, big-endian
        16      2     coverage          uint16 basis points
        18      8     required_arrears  uint64 seconds
        26      8     expiration        uint64 Unix timestamp
        34      1     v                 (full authorization only)
        35      32    r
        67      32    s

    The data-only prefix is 34 bytes, the full authorization 99 bytes.
    Any other length is rejected.

Architecture position:
    Kernel > Domain -- pure, no I/O.  Publicly usable by off-chain tooling
    to build blobs the cosigner will accept.

Invariants enforced:
    - encode_data rejects values that do not fit their bit width
      (FieldOutOfRangeError) instead of truncating them.
    - decode_data(encode_data(*fields)) reproduces fields exactly.
"""

from dataclasses import dataclass

from cosigner_kernel.exceptions import FieldOutOfRangeError, InvalidLengthError

DATA_LENGTH = 34
SIGNATURE_LENGTH = 65
AUTHORIZATION_LENGTH = DATA_LENGTH + SIGNATURE_LENGTH

# (field name, width in bytes), in wire order
_LAYOUT: tuple[tuple[str, int], ...] = (
    ("cost", 16),
    ("coverage", 2),
    ("required_arrears", 8),
    ("expiration", 8),
)


@dataclass(frozen=True, slots=True)
class CosignerData:
    """The four signed fields of an authorization."""

    cost: int
    coverage: int
    required_arrears: int
    expiration: int

    def to_bytes(self) -> bytes:
        return encode_data(
            self.cost, self.coverage, self.required_arrears, self.expiration
        )


@dataclass(frozen=True, slots=True)
class Signature:
    """secp256k1 signature in (v, r, s) form, v in {27, 28}."""

    v: int
    r: bytes
    s: bytes

    def __post_init__(self) -> None:
        if not 0 <= self.v <= 0xFF:
            raise FieldOutOfRangeError("v", self.v, 8)
        if len(self.r) != 32 or len(self.s) != 32:
            raise InvalidLengthError(
                1 + len(self.r) + len(self.s), (SIGNATURE_LENGTH,)
            )

    def to_bytes(self) -> bytes:
        return bytes([self.v]) + self.r + self.s


@dataclass(frozen=True, slots=True)
class Authorization:
    """A decoded 99-byte authorization: signed data plus signature."""

    data: CosignerData
    signature: Signature

    def to_bytes(self) -> bytes:
        return self.data.to_bytes() + self.signature.to_bytes()


def encode_data(
    cost: int,
    coverage: int,
    required_arrears: int,
    expiration: int,
) -> bytes:
    """
    Serialize the four fields into the 34-byte layout.

    Raises:
        FieldOutOfRangeError: If a value is negative or too wide.
    """
    values = (cost, coverage, required_arrears, expiration)
    out = bytearray()
    for (name, width), value in zip(_LAYOUT, values):
        if value < 0 or value >= 1 << (width * 8):
            raise FieldOutOfRangeError(name, value, width * 8)
        out += value.to_bytes(width, "big")
    return bytes(out)


def decode_data(blob: bytes) -> CosignerData:
    """
    Decode the signed fields from a 34-byte prefix or a 99-byte authorization.

    Raises:
        InvalidLengthError: If ``blob`` is neither 34 nor 99 bytes long.
    """
    if len(blob) not in (DATA_LENGTH, AUTHORIZATION_LENGTH):
        raise InvalidLengthError(len(blob), (DATA_LENGTH, AUTHORIZATION_LENGTH))

    fields: dict[str, int] = {}
    offset = 0
    for name, width in _LAYOUT:
        fields[name] = int.from_bytes(blob[offset:offset + width], "big")
        offset += width
    return CosignerData(**fields)


def split_signature(blob: bytes) -> Signature:
    """
    Take (v, r, s) from the last 65 bytes of ``blob``.

    Raises:
        InvalidLengthError: If ``blob`` is shorter than a signature.
    """
    if len(blob) < SIGNATURE_LENGTH:
        raise InvalidLengthError(len(blob), (AUTHORIZATION_LENGTH,))
    tail = blob[-SIGNATURE_LENGTH:]
    return Signature(v=tail[0], r=bytes(tail[1:33]), s=bytes(tail[33:65]))


def decode_authorization(blob: bytes) -> Authorization:
    """
    Decode a full 99-byte authorization.

    Raises:
        InvalidLengthError: If ``blob`` is not exactly 99 bytes long.
    """
    if len(blob) != AUTHORIZATION_LENGTH:
        raise InvalidLengthError(len(blob), (AUTHORIZATION_LENGTH,))
    return Authorization(data=decode_data(blob), signature=split_signature(blob))

