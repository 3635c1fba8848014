from dataclasses import dataclass, field

@dataclass
class AvailabilitySetRecord(object):
    name: str
    fault_domain_count: int
    update_domain_count: int
    tags: dict[str, str] = field(default_factory=dict)
