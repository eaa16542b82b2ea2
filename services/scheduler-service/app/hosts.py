from .domain import Host


class HostRegistry:
    """
    Fixed, configured set of hosts. Order is configuration order and is the
    one canonical ordering used by availability and round-robin alike.
    """

    def __init__(self, hosts: list[Host]):
        ids = [h.id for h in hosts]
        if len(ids) != len(set(ids)):
            raise ValueError("Host ids must be unique")
        self._hosts = list(hosts)

    @classmethod
    def from_config(cls, raw_hosts: list[dict]) -> "HostRegistry":
        hosts = []
        for raw in raw_hosts:
            credential = raw.get("credential") or None
            hosts.append(
                Host(
                    id=str(raw["id"]),
                    name=raw["name"],
                    email=raw["email"],
                    credential=credential,
                )
            )
        return cls(hosts)

    def all(self) -> list[Host]:
        return list(self._hosts)

    def connected(self) -> list[Host]:
        return [h for h in self._hosts if h.connected]

    def statuses(self) -> list[dict]:
        return [
            {"id": h.id, "name": h.name, "email": h.email, "connected": h.connected}
            for h in self._hosts
        ]
