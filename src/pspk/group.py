"""
pspk - Group key agreement over the public directory.

N named parties agree on one secret without talking to each other. Each
party holds one X25519 scalar and extends published intermediate values
with it:

1. Base creation: a throw-away key pair (e, e*G) gives the group base
   point e*(e*G), published under the group name.
2. Contribution: a party multiplies published composites by its scalar
   and republishes them under its own name prepended. For every declared
   peer p it extends the composite of all peers except p, so that each
   peer later finds a value carrying every scalar but its own.
3. Resolution: each party loads the composite of all other parties and
   applies its scalar once more. X25519 scalar multiplication commutes,
   so every party ends on base * (product of all scalars).

Composites are addressed by concatenating participant names and the
group name (see composite_name). The protocol needs an agreed, out of
band ordering of who contributes when; loading a composite that has not
been published yet fails with DirectoryNotFoundError and is not retried.

Example with parties A, B, C and group G1:
    A: group G1                      publishes G1
    C: start-group G1                publishes CG1
    B: start-group G1 C              publishes BG1, BCG1
    A: start-group G1 B C            publishes AG1, ACG1, ABG1, ABCG1
    A: secret-group G1 B C           loads BCG1
    B: secret-group G1 A C           loads ACG1
    C: secret-group G1 A B           loads ABG1
"""

import logging
from typing import List, Sequence

from . import cipher, keys
from .directory import Directory
from .errors import ErrorCode, GroupError

logger = logging.getLogger(__name__)


def composite_name(names: Sequence[str], group: str) -> str:
    """
    Build the directory key of a participant subset.

    Canonical rule: the names concatenated in the order given, followed
    by the group name. The order is not normalized; every party must pass
    participants in the same order (the order of the command line
    arguments) to address the same composite.

    Raises:
        GroupError: the group name is empty or a name repeats
    """
    if not group:
        raise GroupError(ErrorCode.E501_INVALID_GROUP, "Group name must not be empty")
    if len(set(names)) != len(names):
        raise GroupError(
            ErrorCode.E501_INVALID_GROUP,
            "Participant names must be unique",
            {"names": list(names), "group": group},
        )
    if any(not n for n in names):
        raise GroupError(ErrorCode.E501_INVALID_GROUP, "Participant names must not be empty")
    return "".join(names) + group


def create_base(directory: Directory, group: str) -> bytes:
    """
    Create and publish the group's base point.

    The base is e*(e*G) for a fresh scalar e that is discarded, so its
    discrete log is unknown to everyone, its creator included.
    """
    composite_name([], group)
    public_point, private_scalar = keys.generate_dh()
    base = keys.dh(private_scalar, public_point)
    directory.publish(group, base)
    logger.info(f"Published base point for group '{group}'")
    return base


class GroupSession:
    """One identity's view of a group's key agreement."""

    def __init__(self, directory: Directory, name: str, private_scalar: bytes, group: str):
        self.directory = directory
        self.name = name
        self.private_scalar = private_scalar
        self.group = group

    def _check_peers(self, peers: Sequence[str]) -> List[str]:
        peers = list(peers)
        if self.name in peers:
            raise GroupError(
                ErrorCode.E502_SELF_IN_PEERS,
                f"'{self.name}' must not list itself as a peer",
                {"name": self.name, "peers": peers},
            )
        composite_name(peers, self.group)
        return peers

    def _extend(self, composite: str) -> str:
        """Load a composite, apply our scalar, publish under our name."""
        value = self.directory.load(composite)
        extended = keys.dh(self.private_scalar, value)
        target = self.name + composite
        self.directory.publish(target, extended)
        logger.debug(f"Extended '{composite}' to '{target}'")
        return target

    def contribute(self, peers: Sequence[str], include_full: bool = True) -> List[str]:
        """
        Run one contribution round.

        Publishes our scalar applied to the base, then, for each peer, to
        the composite of all peers but that one. With include_full the
        composite of all peers is extended as well.

        Returns:
            directory names published, in order

        Raises:
            DirectoryNotFoundError: a composite this round depends on has
                not been published yet
        """
        peers = self._check_peers(peers)
        published = [self._extend(self.group)]

        for i in range(len(peers)):
            others = peers[:i] + peers[i + 1:]
            published.append(self._extend(composite_name(others, self.group)))

        if include_full and peers:
            published.append(self._extend(composite_name(peers, self.group)))

        logger.info(f"'{self.name}' contributed {len(published)} composites to group '{self.group}'")
        return published

    def start(self, peers: Sequence[str]) -> List[str]:
        return self.contribute(peers, include_full=True)

    def finish(self, peers: Sequence[str]) -> List[str]:
        return self.contribute(peers, include_full=False)

    def resolve(self, peers: Sequence[str]) -> bytes:
        """
        Compute the group secret from the composite of all other parties.

        peers must be every other participant, in the order used by the
        party that published their composite.
        """
        peers = self._check_peers(peers)
        composite = composite_name(peers, self.group)
        secret = keys.dh(self.private_scalar, self.directory.load(composite))
        logger.info(f"'{self.name}' resolved secret for group '{self.group}' from '{composite}'")
        return secret


def group_seal(directory: Directory, group_secret: bytes, group: str, plaintext: bytes) -> bytes:
    """Encrypt for a group: key material from dh(group_secret, base)."""
    base = directory.load(group)
    return cipher.seal(keys.dh(group_secret, base), plaintext)


def group_open(directory: Directory, group_secret: bytes, group: str, ciphertext: bytes) -> bytes:
    base = directory.load(group)
    return cipher.open_sealed(keys.dh(group_secret, base), ciphertext)


def group_ephemeral_seal(group_secret: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt for a group under a throw-away public point.

    The message key comes from dh(group_secret, ephemeral_public) and the
    ephemeral public point is prepended, so every holder of the group
    secret can replay the derivation. The throw-away scalar is never used.
    """
    ephemeral_public, _ = keys.generate_dh()
    ciphertext = cipher.seal(keys.dh(group_secret, ephemeral_public), plaintext)
    return ephemeral_public + ciphertext


def group_ephemeral_open(group_secret: bytes, payload: bytes) -> bytes:
    ephemeral_public, ciphertext = cipher.split_ephemeral(payload)
    return cipher.open_sealed(keys.dh(group_secret, ephemeral_public), ciphertext)
