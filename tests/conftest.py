"""
Shared fixtures for the availability set sample tests.

The Azure management clients are replaced with in-memory fakes so that
the provisioning sequence can run end to end without network access.
"""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"


def poller(result):
    """Stand-in for an LROPoller that has already finished."""
    return Mock(result=Mock(return_value=result))


def resource_id(rg_name, provider, kind, name):
    return f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{rg_name}/providers/{provider}/{kind}/{name}"


class FakeAvailabilitySets:
    """Keeps availability sets per resource group like the compute API does."""

    def __init__(self):
        self.sets = {}

    def _view(self, rg_name, name):
        avset = self.sets[(rg_name, name)]
        return SimpleNamespace(
            id=resource_id(rg_name, "Microsoft.Compute", "availabilitySets", name),
            name=name,
            location=avset.location,
            platform_fault_domain_count=avset.platform_fault_domain_count or 2,
            platform_update_domain_count=avset.platform_update_domain_count or 5,
            sku=avset.sku or SimpleNamespace(name="Classic"),
            tags=dict(avset.tags or {}),
            virtual_machines=[],
        )

    def create_or_update(self, rg_name, name, parameters):
        self.sets[(rg_name, name)] = parameters
        return self._view(rg_name, name)

    def get(self, rg_name, name):
        return self._view(rg_name, name)

    def update(self, rg_name, name, parameters):
        self.sets[(rg_name, name)].tags = dict(parameters.tags)
        return self._view(rg_name, name)

    def list(self, rg_name):
        return [self._view(rg, name) for rg, name in self.sets if rg == rg_name]

    def delete(self, rg_name, name):
        del self.sets[(rg_name, name)]


class FakeAzure:
    """Bundle of fake resource, compute and network clients."""

    def __init__(self):
        self.availability_sets = FakeAvailabilitySets()
        self.deleted_groups = []
        self.calls = []

        self.resource_client = Mock()
        self.resource_client.resource_groups.create_or_update.side_effect = self._create_group
        self.resource_client.resource_groups.begin_delete.side_effect = self._delete_group
        self.resource_client.resource_groups.list.return_value = []

        self.compute_client = Mock()
        self.compute_client.availability_sets = self.availability_sets
        self.compute_client.virtual_machines.begin_create_or_update.side_effect = self._create_vm

        self.network_client = Mock()
        self.network_client.virtual_networks.begin_create_or_update.side_effect = self._create_vnet
        self.network_client.subnets.begin_create_or_update.side_effect = self._create_subnet
        self.network_client.public_ip_addresses.begin_create_or_update.side_effect = self._create_ip
        self.network_client.network_interfaces.begin_create_or_update.side_effect = self._create_nic

    def _create_group(self, name, parameters):
        self.calls.append(("create_group", name))
        return SimpleNamespace(name=name, location=parameters["location"])

    def _delete_group(self, name):
        self.calls.append(("delete_group", name))
        self.deleted_groups.append(name)
        return poller(None)

    def _create_vnet(self, rg_name, name, parameters):
        return poller(SimpleNamespace(
            id=resource_id(rg_name, "Microsoft.Network", "virtualNetworks", name),
            name=name,
            address_space=SimpleNamespace(**parameters["address_space"]),
        ))

    def _create_subnet(self, rg_name, vnet_name, name, parameters):
        return poller(SimpleNamespace(
            id=resource_id(rg_name, "Microsoft.Network", "virtualNetworks", vnet_name) + "/subnets/" + name,
            name=name,
            address_prefix=parameters["address_prefix"],
        ))

    def _create_ip(self, rg_name, name, parameters):
        return poller(SimpleNamespace(
            id=resource_id(rg_name, "Microsoft.Network", "publicIPAddresses", name),
            name=name,
        ))

    def _create_nic(self, rg_name, name, parameters):
        return poller(SimpleNamespace(
            id=resource_id(rg_name, "Microsoft.Network", "networkInterfaces", name),
            name=name,
        ))

    def _create_vm(self, rg_name, name, parameters):
        self.calls.append(("create_vm", name))
        return poller(SimpleNamespace(
            id=resource_id(rg_name, "Microsoft.Compute", "virtualMachines", name),
            name=name,
            location=parameters["location"],
            hardware_profile=SimpleNamespace(**parameters["hardware_profile"]),
            storage_profile=SimpleNamespace(
                image_reference=SimpleNamespace(**parameters["storage_profile"]["image_reference"])
            ),
            os_profile=SimpleNamespace(**parameters["os_profile"]),
            zones=parameters.get("zones"),
            availability_set=SimpleNamespace(**parameters["availability_set"]),
            network_profile=SimpleNamespace(
                network_interfaces=[SimpleNamespace(**nic) for nic in parameters["network_profile"]["network_interfaces"]]
            ),
        ))


@pytest.fixture
def credential_env(monkeypatch):
    monkeypatch.setenv("CLIENT_ID", "client-id")
    monkeypatch.setenv("CLIENT_SECRET", "client-secret")
    monkeypatch.setenv("TENANT_ID", "tenant-id")
    monkeypatch.setenv("SUBSCRIPTION_ID", SUBSCRIPTION_ID)


@pytest.fixture
def fake_azure():
    fake = FakeAzure()
    with patch("provisioner.ResourceManagementClient", return_value=fake.resource_client), \
            patch("provisioner.ComputeManagementClient", return_value=fake.compute_client), \
            patch("provisioner.NetworkManagementClient", return_value=fake.network_client):
        yield fake


@pytest.fixture
def subscription_client():
    with patch("azure_management.ClientSecretCredential") as credential_cls, \
            patch("azure_management.SubscriptionClient") as subscription_cls, \
            patch("azure_management.load_dotenv"):
        subscription_cls.return_value.__enter__.return_value = subscription_cls.return_value
        subscription_cls.return_value.subscriptions.get.return_value = SimpleNamespace(
            id=f"/subscriptions/{SUBSCRIPTION_ID}"
        )
        subscription_cls.credential_cls = credential_cls
        yield subscription_cls


@pytest.fixture
def az(tmp_path, credential_env, fake_azure, subscription_client):
    from azure_management import Azure

    return Azure(data_file=str(tmp_path / "sandboxdata.json"))
