from datetime import datetime

from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.compute.models import AvailabilitySet, AvailabilitySetUpdate, Sku
from azure.mgmt.network import NetworkManagementClient

from models.resource_group import AZResourceGroup as Azrg
from utility import create_random_name, merge_tags

RG_PREFIX = "rgCOMA"
ADDRESS_PREFIX = "10.0.0.0/28"
VM_SIZE = "Standard_D2a_v4"

WINDOWS_IMAGE = {
    "publisher": "MicrosoftWindowsServer",
    "offer": "WindowsServer",
    "sku": "2012-R2-Datacenter",
    "version": "latest",
}
LINUX_IMAGE = {
    "publisher": "Canonical",
    "offer": "UbuntuServer",
    "sku": "16.04-LTS",
    "version": "latest",
}


class Provisioner:
    resource_client: ResourceManagementClient
    compute_client: ComputeManagementClient
    network_client: NetworkManagementClient
    rg: Azrg  # Each provisioner only provisions resources for its own rg
    datetime_str: str

    def __init__(self, credential, subscription_id: str, rg: Azrg = None):
        if rg is None:
            self.datetime_str = datetime.now().strftime("%Y%m%d-%H%M%S")
            self.RG_NAME = create_random_name(RG_PREFIX)
        else:
            self.datetime_str = rg.creation_date
            self.RG_NAME = rg.name
        self.VNET_NAME = create_random_name("vnet")
        self.SUBNET_NAME = create_random_name("subnet")
        self.IP_NAME = create_random_name("pip1")
        self.NIC_NAME = create_random_name("nic")
        self.IP_CONFIG_NAME = "internal"

        self.rg = rg
        self.credential = credential
        self.subscription_id = subscription_id
        self.resource_client = ResourceManagementClient(credential, subscription_id)
        self.compute_client = ComputeManagementClient(credential, subscription_id)
        self.network_client = NetworkManagementClient(credential, subscription_id)

    def provision_resource_group(self, location: str):
        if self.rg is not None:
            raise RuntimeError(f"Provisioner already owns resource group {self.rg.name}")
        resource_group = self.resource_client.resource_groups.create_or_update(self.RG_NAME, {"location": location})
        self.rg = Azrg(resource_group.name, resource_group.location, self.datetime_str)
        return resource_group

    def delete_resource_group(self):
        async_rg_delete = self.resource_client.resource_groups.begin_delete(self.rg.name)
        return async_rg_delete

    def provision_availability_set(self, name: str, fault_domains: int = None, update_domains: int = None,
                                   sku: str = None, tags: dict = None):
        # Unset counts and sku are left to the service defaults
        avset = AvailabilitySet(
            location=self.rg.location,
            platform_fault_domain_count=fault_domains,
            platform_update_domain_count=update_domains,
            sku=Sku(name=sku) if sku else None,
            tags=tags,
        )
        return self.compute_client.availability_sets.create_or_update(self.rg.name, name, avset)

    def tag_availability_set(self, name: str, added: dict, removed: list):
        current = self.compute_client.availability_sets.get(self.rg.name, name)
        tags = merge_tags(current.tags, added, removed)
        return self.compute_client.availability_sets.update(
            self.rg.name,
            name,
            AvailabilitySetUpdate(tags=tags),
        )

    def list_availability_sets(self):
        return list(self.compute_client.availability_sets.list(self.rg.name))

    def delete_availability_set(self, name: str):
        self.compute_client.availability_sets.delete(self.rg.name, name)

    def provision_virtual_network(self):
        async_virtual_network = self.network_client.virtual_networks.begin_create_or_update(
            self.rg.name,
            self.VNET_NAME,
            {
                "location": self.rg.location,
                "address_space": {"address_prefixes": [ADDRESS_PREFIX]},
            },
        )
        return async_virtual_network

    def provision_subnet(self):
        async_subnet = self.network_client.subnets.begin_create_or_update(
            self.rg.name,
            self.VNET_NAME,
            self.SUBNET_NAME,
            {
                "address_prefix": ADDRESS_PREFIX,
                "service_endpoints": [{"service": "Microsoft.Storage"}],
            },
        )
        return async_subnet

    def provision_public_ip(self):
        async_ip = self.network_client.public_ip_addresses.begin_create_or_update(
            self.rg.name,
            self.IP_NAME,
            {
                "location": self.rg.location,
                "sku": {"name": "Standard"},
                "public_ip_allocation_method": "Static",
                "public_ip_address_version": "IPV4",
            },
        )
        return async_ip

    def provision_network_interface(self, sn_result, ip_result):
        async_nic = self.network_client.network_interfaces.begin_create_or_update(
            self.rg.name,
            self.NIC_NAME,
            {
                "location": self.rg.location,
                "ip_configurations": [
                    {
                        "name": self.IP_CONFIG_NAME,
                        "primary": True,
                        "subnet": {"id": sn_result.id},
                        "private_ip_allocation_method": "Dynamic",
                        "public_ip_address": {"id": ip_result.id},
                    }
                ],
            },
        )
        return async_nic

    def provision_vm(self, name: str, computer_name: str, image: dict, nic_result, avset_result,
                     username: str, password: str, zone: str = None):
        parameters = {
            "location": self.rg.location,
            "hardware_profile": {"vm_size": VM_SIZE},
            "os_profile": {
                "computer_name": computer_name,
                "admin_username": username,
                "admin_password": password,
            },
            "network_profile": {
                "network_interfaces": [
                    {
                        "id": nic_result.id,
                        "primary": True,
                    }
                ]
            },
            "storage_profile": {
                "image_reference": image,
                "os_disk": {
                    "create_option": "FromImage",
                    "caching": "ReadWrite",
                    "managed_disk": {"storage_account_type": "Standard_LRS"},
                },
            },
            "availability_set": {"id": avset_result.id},
        }
        if zone is not None:
            parameters["zones"] = [zone]
        async_vm = self.compute_client.virtual_machines.begin_create_or_update(self.rg.name, name, parameters)
        return async_vm

    def list_leftover_resource_groups(self):
        return [
            Azrg(group.name, group.location, "")
            for group in self.resource_client.resource_groups.list()
            if group.name.startswith(RG_PREFIX)
        ]
