"""Tests for the per-kind resource handlers."""

import logging
from unittest.mock import Mock

import pytest

from integration_toolkit.client.transport import APIError
from integration_toolkit.core.models import (
    ApplyConfig,
    ResourceKind,
    ServiceAttachmentNotFoundError,
)
from integration_toolkit.resources import (
    AuthConfigHandler,
    EndpointHandler,
    ManagedZoneHandler,
    ConnectorHandler,
    CustomConnectorHandler,
    SfdcInstanceHandler,
    SfdcChannelHandler,
    get_service_attachment,
)


@pytest.fixture
def config():
    """Run configuration with connector options set."""
    return ApplyConfig(
        folder="scaffold",
        service_account_name="sa",
        service_account_project="sa-project",
        encryption_key="locations/l/keyRings/k/cryptoKeys/c",
        grant_permission=True,
        create_secret=True,
        wait=True,
    )


@pytest.fixture
def client():
    """Mock API client."""
    return Mock()


def write(folder, name, content=b"{}"):
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    path.write_bytes(content)
    return path


# ===== Auth configs =====

def test_authconfig_created_when_absent(tmp_path, client, config):
    """Test an auth config is created when the lookup returns no id."""
    write(tmp_path, "ac1.json", b'{"displayName": "ac1"}')
    client.find_authconfig.return_value = ""

    created = AuthConfigHandler(client, config).apply(tmp_path)

    assert created == 1
    client.find_authconfig.assert_called_once_with("ac1")
    client.create_authconfig.assert_called_once_with(b'{"displayName": "ac1"}')


def test_authconfig_skipped_when_present(tmp_path, client, config):
    """Test an existing auth config is not created again."""
    write(tmp_path, "ac1.json")
    client.find_authconfig.return_value = "1234"

    created = AuthConfigHandler(client, config).apply(tmp_path)

    assert created == 0
    client.create_authconfig.assert_not_called()


def test_authconfig_lookup_error_means_absent(tmp_path, client, config):
    """Test a failed auth config lookup leads to creation."""
    write(tmp_path, "ac1.json")
    client.find_authconfig.side_effect = APIError("boom", status_code=500)

    assert AuthConfigHandler(client, config).apply(tmp_path) == 1
    client.create_authconfig.assert_called_once()


# ===== Endpoints =====

def test_endpoint_created_with_service_attachment(tmp_path, client, config):
    """Test the service attachment comes from the endpoint file."""
    write(tmp_path, "ep1.json", b'{"serviceAttachment": "projects/p/regions/r/serviceAttachments/s"}')
    client.endpoint_exists.return_value = False

    assert EndpointHandler(client, config).apply(tmp_path) == 1

    client.endpoint_exists.assert_called_once_with("ep1")
    client.create_endpoint.assert_called_once_with(
        "ep1", "projects/p/regions/r/serviceAttachments/s"
    )


def test_endpoint_skipped_when_present(tmp_path, client, config):
    """Test the boolean lookup returning True skips creation."""
    write(tmp_path, "ep1.json")
    client.endpoint_exists.return_value = True

    assert EndpointHandler(client, config).apply(tmp_path) == 0
    client.create_endpoint.assert_not_called()


def test_endpoint_without_service_attachment_fails(tmp_path, client, config):
    """Test a missing serviceAttachment aborts with an error."""
    write(tmp_path, "ep1.json", b'{"description": "x"}')
    client.endpoint_exists.return_value = False

    with pytest.raises(ServiceAttachmentNotFoundError):
        EndpointHandler(client, config).apply(tmp_path)
    client.create_endpoint.assert_not_called()


def test_get_service_attachment_empty():
    """Test an empty serviceAttachment is treated as missing."""
    with pytest.raises(ServiceAttachmentNotFoundError):
        get_service_attachment(b'{"serviceAttachment": ""}')


# ===== Managed zones =====

def test_zone_created_when_lookup_fails(tmp_path, client, config):
    """Test a zone lookup error means the zone is absent."""
    write(tmp_path, "z1.json", b'{"dns": "example.com."}')
    client.get_zone.side_effect = APIError("not found", status_code=404)

    assert ManagedZoneHandler(client, config).apply(tmp_path) == 1
    client.create_zone.assert_called_once_with("z1", b'{"dns": "example.com."}')


def test_zone_skipped_when_lookup_succeeds(tmp_path, client, config):
    """Test an existing zone is not created again."""
    write(tmp_path, "z1.json")
    client.get_zone.return_value = {"name": "z1"}

    assert ManagedZoneHandler(client, config).apply(tmp_path) == 0
    client.create_zone.assert_not_called()


# ===== Connectors =====

def test_connector_created_with_run_options(tmp_path, client, config):
    """Test connector creation forwards the run-scoped options."""
    write(tmp_path, "c1.json", b'{"connectorVersion": "v"}')
    client.get_connection.side_effect = APIError("not found", status_code=404)

    assert ConnectorHandler(client, config).apply(tmp_path) == 1

    client.create_connection.assert_called_once_with(
        "c1",
        b'{"connectorVersion": "v"}',
        service_account_name="sa",
        service_account_project="sa-project",
        encryption_key="locations/l/keyRings/k/cryptoKeys/c",
        grant_permission=True,
        create_secret=True,
        wait=True,
    )


def test_connector_skipped_when_present(tmp_path, client, config):
    """Test an existing connector is not created again."""
    write(tmp_path, "c1.json")
    client.get_connection.return_value = {"name": "c1"}

    assert ConnectorHandler(client, config).apply(tmp_path) == 0
    client.create_connection.assert_not_called()


def test_connector_create_error_propagates(tmp_path, client, config):
    """Test a failing create aborts the kind."""
    write(tmp_path, "a.json")
    write(tmp_path, "b.json")
    client.get_connection.side_effect = APIError("not found", status_code=404)
    client.create_connection.side_effect = APIError("quota", status_code=429)

    with pytest.raises(APIError, match="quota"):
        ConnectorHandler(client, config).apply(tmp_path)
    assert client.create_connection.call_count == 1


# ===== Custom connectors =====

def test_custom_connector_created_with_version(tmp_path, client, config):
    """Test custom connector name and version come from the file name."""
    write(tmp_path, "myconn__2.json", b'{"customConnectorVersion": {}}')
    client.get_custom_connector_version.side_effect = APIError("not found", status_code=404)

    assert CustomConnectorHandler(client, config).apply(tmp_path) == 1

    client.get_custom_connector_version.assert_called_once_with("myconn", "2")
    client.create_custom_connector_version.assert_called_once_with(
        "myconn",
        "2",
        b'{"customConnectorVersion": {}}',
        service_account_name="sa",
        service_account_project="sa-project",
    )


def test_custom_connector_skipped_when_present(tmp_path, client, config):
    """Test an existing custom connector version is not created again."""
    write(tmp_path, "myconn__2.json")
    client.get_custom_connector_version.return_value = {"name": "2"}

    assert CustomConnectorHandler(client, config).apply(tmp_path) == 0
    client.create_custom_connector_version.assert_not_called()


def test_custom_connector_bad_name_skipped_silently(tmp_path, client, config, caplog):
    """Test a file breaking the naming convention is skipped without a log."""
    write(tmp_path, "noversion.json")

    with caplog.at_level(logging.DEBUG):
        created = CustomConnectorHandler(client, config).apply(tmp_path)

    assert created == 0
    assert client.mock_calls == []
    assert "noversion.json" not in caplog.text


def test_custom_connector_legacy_splitter(tmp_path, client):
    """Test the legacy splitter is used when use_underscore is set."""
    write(tmp_path, "myconn_2.json")
    client.get_custom_connector_version.side_effect = APIError("not found", status_code=404)
    config = ApplyConfig(folder="f", use_underscore=True)

    CustomConnectorHandler(client, config).apply(tmp_path)

    client.get_custom_connector_version.assert_called_once_with("myconn", "2")


# ===== SFDC instances =====

def test_sfdc_instance_created_when_absent(tmp_path, client, config):
    """Test an SFDC instance is created when the lookup fails."""
    write(tmp_path, "inst.json", b'{"displayName": "inst"}')
    client.get_sfdc_instance.side_effect = APIError("not found", status_code=404)

    assert SfdcInstanceHandler(client, config).apply(tmp_path) == 1

    client.get_sfdc_instance.assert_called_once_with("inst", minimal=True)
    client.create_sfdc_instance.assert_called_once_with(b'{"displayName": "inst"}')


def test_sfdc_instance_skipped_when_present(tmp_path, client, config):
    """Test an existing SFDC instance is not created again."""
    write(tmp_path, "inst.json")
    client.get_sfdc_instance.return_value = {"name": "x"}

    assert SfdcInstanceHandler(client, config).apply(tmp_path) == 0
    client.create_sfdc_instance.assert_not_called()


# ===== SFDC channels =====

def test_sfdc_channel_lookup_order_is_reversed(tmp_path, client, config):
    """Test the lookup takes (channel, instance) for instance__channel files."""
    write(tmp_path, "myinstance__mychannel.json", b'{"displayName": "mychannel"}')
    client.find_sfdc_channel.side_effect = APIError("not found", status_code=404)

    assert SfdcChannelHandler(client, config).apply(tmp_path) == 1

    client.find_sfdc_channel.assert_called_once_with("mychannel", "myinstance")
    client.create_sfdc_channel.assert_called_once_with(
        "myinstance", b'{"displayName": "mychannel"}'
    )


def test_sfdc_channel_skipped_when_present(tmp_path, client, config):
    """Test an existing SFDC channel is not created again."""
    write(tmp_path, "inst__chan.json")
    client.find_sfdc_channel.return_value = {"name": "chan"}

    assert SfdcChannelHandler(client, config).apply(tmp_path) == 0
    client.create_sfdc_channel.assert_not_called()


def test_sfdc_channel_bad_name_warns_and_continues(tmp_path, client, config, caplog):
    """Test a badly named channel file is skipped with a warning."""
    write(tmp_path, "a__b__c.json")
    write(tmp_path, "inst__chan.json")
    client.find_sfdc_channel.side_effect = APIError("not found", status_code=404)

    with caplog.at_level(logging.WARNING):
        created = SfdcChannelHandler(client, config).apply(tmp_path)

    assert created == 1
    client.find_sfdc_channel.assert_called_once_with("chan", "inst")
    assert "a__b__c.json does not follow the naming convention" in caplog.text


# ===== Common behaviour =====

def test_missing_folder_is_noop(tmp_path, client, config):
    """Test an absent kind folder makes no calls."""
    assert ConnectorHandler(client, config).apply(tmp_path / "connectors") == 0
    assert client.mock_calls == []


def test_non_json_files_ignored(tmp_path, client, config):
    """Test files not ending in .json are ignored."""
    write(tmp_path, "README.md", b"docs")

    assert ManagedZoneHandler(client, config).apply(tmp_path) == 0
    assert client.mock_calls == []


def test_second_apply_creates_nothing(tmp_path, client, config):
    """Test applying twice only creates on the first run."""
    write(tmp_path, "z1.json")
    write(tmp_path, "z2.json")
    existing = set()

    def get_zone(name):
        if name not in existing:
            raise APIError("not found", status_code=404)
        return {"name": name}

    client.get_zone.side_effect = get_zone
    client.create_zone.side_effect = lambda name, content: existing.add(name)
    handler = ManagedZoneHandler(client, config)

    assert handler.apply(tmp_path) == 2
    assert handler.apply(tmp_path) == 0
    assert client.create_zone.call_count == 2


def test_handler_kinds(client, config):
    """Test each handler reports its resource kind."""
    assert AuthConfigHandler(client, config).kind == ResourceKind.AUTHCONFIG
    assert EndpointHandler(client, config).kind == ResourceKind.ENDPOINT
    assert ManagedZoneHandler(client, config).kind == ResourceKind.MANAGED_ZONE
    assert ConnectorHandler(client, config).kind == ResourceKind.CONNECTOR
    assert CustomConnectorHandler(client, config).kind == ResourceKind.CUSTOM_CONNECTOR
    assert SfdcInstanceHandler(client, config).kind == ResourceKind.SFDC_INSTANCE
    assert SfdcChannelHandler(client, config).kind == ResourceKind.SFDC_CHANNEL
