import secrets
import string
import uuid


def create_random_name(prefix: str, length: int = 8) -> str:
    return prefix + uuid.uuid4().hex[:length]


def create_username() -> str:
    return create_random_name("tirekicker", 4)


def create_password() -> str:
    # Azure requires 3 of: lower, upper, digit, special
    alphabet = string.ascii_letters + string.digits
    body = "".join(secrets.choice(alphabet) for _ in range(12))
    return "Aa1!" + body


def merge_tags(current: dict, added: dict, removed: list) -> dict:
    """Return current tags with added merged in and removed keys dropped.

    Applying the result again with the same arguments gives the same tags.
    """
    tags = dict(current or {})
    tags.update(added)
    for key in removed:
        tags.pop(key, None)
    return tags


def format_tags(tags: dict) -> str:
    if not tags:
        return "(none)"
    return ", ".join(f"{key}={value}" for key, value in sorted(tags.items()))


def print_availability_set(avset):
    vms = avset.virtual_machines or []
    print(
        "Availability Set: " + avset.id + "\n"
        f"\tName: {avset.name}\n"
        f"\tLocation: {avset.location}\n"
        f"\tFault domain count: {avset.platform_fault_domain_count}\n"
        f"\tUpdate domain count: {avset.platform_update_domain_count}\n"
        f"\tSku: {avset.sku.name if avset.sku else None}\n"
        f"\tTags: {format_tags(avset.tags)}\n"
        f"\tVirtual machines: {len(vms)}"
    )


def print_virtual_machine(vm):
    image = vm.storage_profile.image_reference
    nics = vm.network_profile.network_interfaces
    avset_id = vm.availability_set.id if vm.availability_set else None
    print(
        "Virtual Machine: " + vm.id + "\n"
        f"\tName: {vm.name}\n"
        f"\tLocation: {vm.location}\n"
        f"\tSize: {vm.hardware_profile.vm_size}\n"
        f"\tImage: {image.publisher}/{image.offer}/{image.sku}/{image.version}\n"
        f"\tComputer name: {vm.os_profile.computer_name}\n"
        f"\tZones: {', '.join(vm.zones or []) or '(none)'}\n"
        f"\tAvailability set: {avset_id}\n"
        f"\tNetwork interfaces: {', '.join(nic.id for nic in nics)}"
    )
