from dataclasses import asdict, dataclass, field

RawInfo = dict[str, str]

ROLE_MASTER = 'master'
ROLE_SLAVE = 'slave'
ROLE_UNKNOWN = 'unknown'


@dataclass
class ReplicaRecord:
    address: str
    port: int
    state: str
    offset: int
    lag: int
    name: str | None = None


@dataclass
class HostInfo:
    host: str
    role: str = ROLE_UNKNOWN
    info: RawInfo = field(default_factory=dict)
    replicas: list[ReplicaRecord] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


@dataclass
class ErrorRecord:
    cluster_key: str | None
    host: str | None
    kind: str
    message: str


HostMap = dict[str, HostInfo]
ClusterReport = dict[str, HostMap]


def report_to_dict(report: ClusterReport):
    return {key: {host: info.to_dict() for host, info in hosts.items()} for key, hosts in report.items()}
