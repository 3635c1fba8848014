from dataclasses import dataclass

@dataclass
class VM(object):
    username: str
    password: str
    public_ip_name: str
    hostname: str
    image: str
