import os
import logging
import concurrent.futures
from contextlib import contextmanager

from azure.identity import ClientSecretCredential
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.resource import SubscriptionClient
from dotenv import load_dotenv

import jsonpickle as jspk

from models.availability_set import AvailabilitySetRecord
from models.resource_group import AZResourceGroup as Azrg
from models.run_state import RunState
from models.sandbox_data import SandboxData
from models.vm import VM
from provisioner import Provisioner, WINDOWS_IMAGE, LINUX_IMAGE
import utility

logger = logging.getLogger(__name__)

SANDBOXDATAFILE = "sandboxdata.json"
LOCATION = "eastus"
REQUIRED_ENV = ("CLIENT_ID", "CLIENT_SECRET", "TENANT_ID", "SUBSCRIPTION_ID")

INITIAL_TAGS = {"cluster": "Windowslinux", "tag1": "tag1val"}
ADDED_TAGS = {"server1": "nginx", "server2": "iis"}
REMOVED_TAGS = ["tag1"]


class CredentialError(Exception):
    """Credential material is missing from the environment or was rejected."""


class Azure:
    rg_list: list[Azrg] = None
    subscription_id: str = None
    state: RunState = RunState.UNAUTHENTICATED

    def __init__(self, location: str = LOCATION, data_file: str = SANDBOXDATAFILE):
        self.rg_list = []
        self.location = location
        self.data_file = data_file
        self.credential, self.subscription_id = self.login_with_service_principal()
        self.load_info_from_file()

    @staticmethod
    def login_with_service_principal():
        load_dotenv()
        missing = [name for name in REQUIRED_ENV if not os.environ.get(name)]
        if missing:
            raise CredentialError("Missing environment variables: " + ", ".join(missing))
        credential = ClientSecretCredential(
            tenant_id=os.environ["TENANT_ID"],
            client_id=os.environ["CLIENT_ID"],
            client_secret=os.environ["CLIENT_SECRET"],
        )
        subscription_id = os.environ["SUBSCRIPTION_ID"]
        try:
            with SubscriptionClient(credential) as client:
                subscription = client.subscriptions.get(subscription_id)
        except HttpResponseError as e:
            raise CredentialError(f"Credential rejected for subscription {subscription_id}") from e
        logger.info("Selected subscription: %s", subscription.id)
        return credential, subscription_id

    def new_provisioner(self, rg: Azrg = None) -> Provisioner:
        return Provisioner(self.credential, self.subscription_id, rg)

    @contextmanager
    def sandbox(self, prov: Provisioner):
        """Create the resource group and delete it on every exit path."""
        rg_result = prov.provision_resource_group(self.location)
        self.state = RunState.GROUP_CREATED
        try:
            logger.info("Resource group %s created in %s region", rg_result.name, rg_result.location)
            self.rg_list.append(prov.rg)
            self.save_info_to_file()
            yield prov.rg
        finally:
            self.teardown(prov)

    def teardown(self, prov: Provisioner):
        name = prov.rg.name
        try:
            logger.info("Deleting Resource Group: %s", name)
            prov.delete_resource_group().result()
            logger.info("Deleted Resource Group: %s", name)
            if prov.rg in self.rg_list:
                self.rg_list.remove(prov.rg)
            self.save_info_to_file()
        except Exception:
            logger.exception("Failed to delete resource group %s", name)
        self.state = RunState.CLEANED

    def run_sample(self):
        prov = self.new_provisioner()
        with self.sandbox(prov) as rg:
            # Availability set with explicit domains, sku and tags
            logger.info("Creating an availability set")
            avset_name1 = utility.create_random_name("av1")
            avset1 = prov.provision_availability_set(
                avset_name1, fault_domains=2, update_domains=4, sku="Aligned", tags=dict(INITIAL_TAGS)
            )
            rg.availability_sets.append(
                AvailabilitySetRecord(
                    avset1.name, avset1.platform_fault_domain_count, avset1.platform_update_domain_count,
                    dict(avset1.tags or {})
                )
            )
            self.save_info_to_file()
            logger.info("Created first availability set: %s", avset1.id)
            utility.print_availability_set(avset1)

            # Network shared by both VMs
            vn_result = prov.provision_virtual_network().result()
            logger.info(
                "Provisioned virtual network %s with address prefixes %s",
                vn_result.name, vn_result.address_space.address_prefixes
            )
            logger.info("Creating a subnet...")
            sn_result = prov.provision_subnet().result()
            logger.info("Provisioned subnet %s with address prefix %s", sn_result.name, sn_result.address_prefix)
            logger.info("Creating a public IP address...")
            ip_result = prov.provision_public_ip().result()
            logger.info("Provisioned public IP %s", ip_result.name)
            nic_result = prov.provision_network_interface(sn_result, ip_result).result()
            logger.info("Provisioned network interface %s", nic_result.name)

            username = utility.create_username()
            password = utility.create_password()

            logger.info("Creating a Windows VM in the availability set")
            vm1_result = self.create_vm(prov, rg, "vm1", "winvm", WINDOWS_IMAGE, nic_result, avset1,
                                        username, password, ip_result, zone="1")
            logger.info("Created first VM: %s", vm1_result.id)
            utility.print_virtual_machine(vm1_result)

            logger.info("Creating a Linux VM in the availability set")
            vm2_result = self.create_vm(prov, rg, "vm2", "linuxvm", LINUX_IMAGE, nic_result, avset1,
                                        username, password, ip_result, zone="1")
            logger.info("Created second VM: %s", vm2_result.id)
            utility.print_virtual_machine(vm2_result)

            # Tag update: merge two, remove one
            avset1 = prov.tag_availability_set(avset1.name, ADDED_TAGS, REMOVED_TAGS)
            rg.availability_sets[0].tags = dict(avset1.tags or {})
            self.save_info_to_file()
            logger.info("Tagged availability set: %s", avset1.id)

            logger.info("Creating an availability set")
            avset2 = prov.provision_availability_set(utility.create_random_name("av2"))
            rg.availability_sets.append(
                AvailabilitySetRecord(
                    avset2.name, avset2.platform_fault_domain_count, avset2.platform_update_domain_count
                )
            )
            self.save_info_to_file()
            logger.info("Created second availability set: %s", avset2.id)
            utility.print_availability_set(avset2)

            logger.info("Printing list of availability sets =======")
            for avset in prov.list_availability_sets():
                utility.print_availability_set(avset)

            logger.info("Deleting an availability set: %s", avset2.id)
            prov.delete_availability_set(avset2.name)
            rg.availability_sets = [record for record in rg.availability_sets if record.name != avset2.name]
            self.save_info_to_file()
            logger.info("Deleted availability set: %s", avset2.id)

            self.state = RunState.PROVISIONED
        return

    def create_vm(self, prov: Provisioner, rg: Azrg, prefix: str, computer_prefix: str, image: dict,
                  nic_result, avset_result, username: str, password: str, ip_result, zone: str = None):
        name = utility.create_random_name(prefix)
        computer_name = utility.create_random_name(computer_prefix, 4)
        vm_result = prov.provision_vm(
            name, computer_name, image, nic_result, avset_result, username, password, zone=zone
        ).result()
        rg.vm_list.append(VM(username, password, ip_result.name, computer_name, image["offer"]))
        self.save_info_to_file()
        return vm_result

    def delete_all_rg(self):
        logger.info("Deleting leftover resource groups, this will take a long time")
        targets = list(self.rg_list)
        known = {rg.name for rg in targets}
        for rg in self.new_provisioner().list_leftover_resource_groups():
            if rg.name not in known:
                # Not in the run record, may belong to a run still in progress elsewhere
                logger.warning("Resource group %s matched by name prefix only", rg.name)
                targets.append(rg)
        templist = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=32) as executor:
            for rg in targets:
                prov = self.new_provisioner(rg)
                future = executor.submit(self.delete_resource_group_if_present, prov)
                templist.append((future, rg.name))
                logger.info("Deleting %s", rg.name)
            for future, name in templist:
                future.result()
        if os.path.exists(self.data_file):
            os.remove(self.data_file)
        self.rg_list.clear()
        logger.info("All leftover resource groups have been deleted")
        return

    @staticmethod
    def delete_resource_group_if_present(prov: Provisioner):
        try:
            prov.delete_resource_group().result()
            logger.info("Deleted resource group %s in %s region", prov.rg.name, prov.rg.location)
        except ResourceNotFoundError:
            logger.info("Resource group %s not found, skipping...", prov.rg.name)

    def save_info_to_file(self):
        sdobj = SandboxData(self.rg_list)
        json = jspk.encode(sdobj, indent=4)
        with open(self.data_file, "w") as fd:
            fd.write(json)
        return

    def load_info_from_file(self):
        sdobj: SandboxData
        if not os.path.exists(self.data_file):
            self.rg_list = []
            return
        with open(self.data_file, "r") as fd:
            json = fd.read()
        sdobj = jspk.decode(json)
        self.rg_list = sdobj.rg_list
        return
