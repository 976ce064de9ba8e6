import enum

from Crypto.Hash.MD4 import new as md4_new

from . import exceptions

BLOCK_SIZE = 9500 * 1024
DIGEST_SIZE = 16
# MD4 of the empty input, the ed2k hash of an empty file
EMPTY_DIGEST = bytes.fromhex('31d6cfe0d16ae931b73c59d7e0c089c0')


class BoundaryPolicy(enum.Enum):
    """How an input whose length is an exact multiple of the block size is finished.

    Two families of ed2k clients disagree here. OLD hashes only the completed
    block digests, NEW also hashes in the digest of an empty trailing block.
    Inputs of any other length hash the same under both policies.
    """
    OLD = 'old'
    NEW = 'new'


class Ed2kHash:
    """Incremental ed2k hash.

    The input is cut into blocks of ``block_size`` bytes and every block is
    hashed on its own. An input shorter than one block hashes to the digest of
    that block. When there is more than one block digest, the result is the
    digest of the concatenated block digests.

    ``digest_factory`` returns a fresh 128-bit digest object with ``update``
    and a non-destructive ``digest``. MD4 unless told otherwise.
    """
    name = 'ed2k'
    digest_size = DIGEST_SIZE

    def __init__(self, policy, data=b'', *, block_size=BLOCK_SIZE, digest_factory=md4_new):
        if block_size <= 0:
            raise ValueError(f'block_size must be positive, got {block_size}')
        self._policy = BoundaryPolicy(policy)
        self._block_size = block_size
        self._digest_factory = digest_factory
        self._block_digests = []
        self._current = None
        self._current_length = 0
        self._total_length = 0
        self.reset()
        self.update(data)

    @property
    def policy(self):
        return self._policy

    @property
    def block_size(self):
        return self._block_size

    def reset(self):
        self._block_digests = []
        self._total_length = 0
        self._start_block()

    def update(self, data):
        view = memoryview(data).cast('B')
        offset = 0
        while offset < len(view):
            room = self._block_size - self._current_length
            piece = view[offset:offset + room]
            self._current.update(piece)
            self._current_length += len(piece)
            self._total_length += len(piece)
            offset += len(piece)

            if self._current_length == self._block_size:
                self._block_digests.append(self._current.digest())
                self._start_block()

    def digest(self):
        if self._total_length < self._block_size:
            return self._current.digest()

        digests = list(self._block_digests)
        if self._current_length:
            digests.append(self._current.digest())
        elif self._policy is BoundaryPolicy.NEW:
            digests.append(self._digest_factory().digest())

        # A single whole block under OLD is not hashed twice
        if len(digests) == 1:
            return digests[0]

        outer = self._digest_factory()
        outer.update(b''.join(digests))
        return outer.digest()

    def hexdigest(self):
        return self.digest().hex()

    def __str__(self):
        return self.hexdigest()

    def __repr__(self):
        return f'<{type(self).__name__} policy={self._policy.value} length={self._total_length}>'

    def _start_block(self):
        self._current = self._digest_factory()
        self._current_length = 0


def ed2k_of_file(file_, policy, read_size=BLOCK_SIZE):
    ed2k = Ed2kHash(policy)
    while True:
        chunk = file_.read(read_size)
        if not chunk:
            break
        ed2k.update(chunk)
    return ed2k.hexdigest()


def ed2k_of_path(path, policy):
    try:
        with open(path, 'rb') as file_:
            return ed2k_of_file(file_, policy)
    except OSError as error:
        raise exceptions.Ed2kReadException(f'Failed to read {path}: {error}') from error
