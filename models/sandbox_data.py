from dataclasses import dataclass
from models.resource_group import AZResourceGroup as azrg

@dataclass
class SandboxData(object):
    rg_list: list[azrg]
