from dataclasses import dataclass, field
from models.vm import VM
from models.availability_set import AvailabilitySetRecord

@dataclass
class AZResourceGroup(object):
    name: str
    location: str
    creation_date: str
    vm_list: list[VM] = field(default_factory=list)
    availability_sets: list[AvailabilitySetRecord] = field(default_factory=list)
