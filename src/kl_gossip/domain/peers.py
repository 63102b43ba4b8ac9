"""Peer registry: ordered, append-only, de-duplicated set of peer base URLs."""


def normalize_peer(address: str) -> str:
    """Strip surrounding whitespace and trailing slashes from a peer base URL."""
    return address.strip().rstrip("/")


class PeerRegistry:
    """Owned by one node instance; never shared between nodes."""

    def __init__(self, peers: list[str] | None = None) -> None:
        self._peers: list[str] = []
        for peer in peers or []:
            self.add(peer)

    def add(self, address: str) -> bool:
        """Register a peer. Returns False if it was already known or blank."""
        peer = normalize_peer(address)
        if not peer or peer in self._peers:
            return False
        self._peers.append(peer)
        return True

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and normalize_peer(address) in self._peers

    def __len__(self) -> int:
        return len(self._peers)

    def snapshot(self) -> list[str]:
        return list(self._peers)
