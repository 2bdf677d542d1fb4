# -*- coding: utf-8 -*-

import pytest

from conftest import FakeRunner, make_result

from services import network_service


IWLIST_OUTPUT = """wlan0     Scan completed :
          Cell 01 - Address: AA:BB:CC:DD:EE:01
                    Channel:6
                    Frequency:2.437 GHz (Channel 6)
                    Quality=58/70  Signal level=-52 dBm
                    Encryption key:on
                    ESSID:"HomeNetwork"
                    IE: IEEE 802.11i/WPA2 Version 1
                        Group Cipher : CCMP
          Cell 02 - Address: AA:BB:CC:DD:EE:02
                    Channel:11
                    Quality=30/70  Signal level=-80 dBm
                    Encryption key:on
                    ESSID:"OldRouter"
                    IE: WPA Version 1
          Cell 03 - Address: AA:BB:CC:DD:EE:03
                    Quality=20/70  Signal level=-90 dBm
                    Encryption key:off
                    ESSID:"Cafe"
                    IE: Unknown: DD0900"""

WPA_CONFIG = """ctrl_interface=DIR=/var/run/wpa_supplicant GROUP=netdev
update_config=1
country=NZ

network={
    ssid="bushnet"
    psk="feathers"
}

network={
    ssid="HomeNetwork"
    psk="secret"
}"""

IP_ADDR_JSON = """[
  {"ifindex": 1, "ifname": "lo", "flags": ["LOOPBACK", "UP", "LOWER_UP"], "mtu": 65536,
   "address": "00:00:00:00:00:00",
   "addr_info": [{"family": "inet", "local": "127.0.0.1", "prefixlen": 8}]},
  {"ifindex": 3, "ifname": "wlan0", "flags": ["BROADCAST", "MULTICAST", "UP"], "mtu": 1500,
   "address": "b8:27:eb:00:00:01",
   "addr_info": [{"family": "inet", "local": "192.168.1.23", "prefixlen": 24},
                 {"family": "inet6", "local": "fe80::1", "prefixlen": 64}]}
]"""


def test_parse_wifi_scan_output():
    networks = network_service.parse_wifi_scan_output(IWLIST_OUTPUT)

    assert [n["SSID"] for n in networks] == ["HomeNetwork", "OldRouter", "Cafe"]
    assert networks[0]["Quality"] == "58/70"
    assert networks[0]["Signal Level"] == "-52 dBm"
    assert networks[0]["Security"] == "WPA2"
    assert networks[1]["Security"] == "WPA"
    assert networks[2]["Security"] == "Unknown"


def test_parse_wifi_scan_output_empty():
    assert network_service.parse_wifi_scan_output("wlan0     No scan results") == []


def test_add_network_appends_block_once(tmp_path):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)

    network_service.add_network_to_wpa_config("Cafe", "latte", str(conf))
    network_service.add_network_to_wpa_config("Cafe", "latte", str(conf))

    content = conf.read_text()
    assert content.count('ssid="Cafe"') == 1
    assert 'psk="latte"' in content


def test_remove_network_keeps_other_blocks(tmp_path):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)

    network_service.remove_network_from_wpa_config("HomeNetwork", str(conf))

    content = conf.read_text()
    assert 'ssid="HomeNetwork"' not in content
    assert 'ssid="bushnet"' in content
    assert "update_config=1" in content


def test_parse_list_networks():
    output = """network id / ssid / bssid / flags
0\tbushnet\tany\t
1\tHomeNetwork\tany\t[CURRENT]"""
    assert network_service.parse_list_networks(output) == {"bushnet": "0", "HomeNetwork": "1"}


def test_parse_ip_addr_json():
    interfaces = network_service.parse_ip_addr_json(IP_ADDR_JSON)

    assert interfaces[1] == {
        "name": "wlan0",
        "addresses": ["192.168.1.23/24", "fe80::1/64"],
        "mtu": 1500,
        "macAddress": "b8:27:eb:00:00:01",
        "flags": "broadcast|multicast|up",
    }


def test_parse_packets_received():
    ping = "3 packets transmitted, 2 received, 33% packet loss, time 2003ms"
    busybox_ping = "3 packets transmitted, 3 packets received, 0% packet loss"
    assert network_service.parse_packets_received(ping) == 2
    assert network_service.parse_packets_received(busybox_ping) == 3
    assert network_service.parse_packets_received("ping: unknown iface") == 0


def test_check_interface_reports_down_when_nothing_received(monkeypatch):
    runner = FakeRunner(default=make_result(
        success=False,
        stdout="3 packets transmitted, 0 received, 100% packet loss"
    ))
    monkeypatch.setattr(network_service, "run_command", runner)

    result = network_service.check_interface("usb0")

    assert result["up"] is False
    assert result["status"] == "usb0 is DOWN."
    assert runner.commands[0].startswith("ping -I usb0 -c 3")


def test_check_internet_connection_down_interface(monkeypatch):
    monkeypatch.setattr(network_service, "interface_is_up", lambda name: False)
    result = network_service.check_internet_connection("wlan0")
    assert not result["success"]
    assert not result["connected"]


def test_disconnect_keeps_protected_network(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))
    monkeypatch.setattr(network_service, "run_command", FakeRunner(default=make_result(stdout="ssid=bushnet")))
    restarted = []
    monkeypatch.setattr(
        network_service, "systemctl",
        lambda action, unit, timeout=30: restarted.append((action, unit)) or make_result()
    )

    result = network_service.disconnect_wifi("bushnet")

    assert result["success"]
    assert 'ssid="bushnet"' in conf.read_text()
    assert restarted == [("restart", "dhcpcd")]


def test_connect_wifi_abandons_network_on_reconfigure_failure(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))
    monkeypatch.setattr(network_service, "run_command", FakeRunner(
        responses={"wpa_cli -i wlan0 reconfigure": make_result(success=False, stderr="FAIL")}
    ))

    result = network_service.connect_wifi("Cafe", "latte")

    assert not result["success"]
    assert "reconfigure failed" in result["message"]
    assert 'ssid="Cafe"' not in conf.read_text()


@pytest.mark.parametrize("ssid, password, error", [
    ('Home"Net', "secret", "ssid must not contain double quotes"),
    ("Home\nNet", "secret", "ssid must not contain control characters"),
    ("HomeNet", 'se"cret', "password must not contain double quotes"),
    ("HomeNet", "sec\x7fret", "password must not contain control characters"),
    ("HomeNet", "se\x00cret", "password must not contain control characters"),
])
def test_validate_wifi_credentials_rejects(ssid, password, error):
    assert network_service.validate_wifi_credentials(ssid, password) == error


def test_validate_wifi_credentials_accepts_spaces_and_unicode():
    assert network_service.validate_wifi_credentials("Café Wi-Fi", "p@ss word!") == ""


def test_connect_wifi_rejects_quote_in_password_without_touching_config(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))
    runner = FakeRunner()
    monkeypatch.setattr(network_service, "run_command", runner)

    result = network_service.connect_wifi("Cafe", 'a"\n}\nnetwork={')

    assert not result["success"]
    assert result["client_error"]
    assert conf.read_text() == WPA_CONFIG
    assert runner.commands == []


def test_save_wifi_network_replaces_existing_entry(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))
    runner = FakeRunner()
    monkeypatch.setattr(network_service, "run_command", runner)

    result = network_service.save_wifi_network("HomeNetwork", "newsecret")

    assert result["success"]
    content = conf.read_text()
    assert content.count('ssid="HomeNetwork"') == 1
    assert 'psk="newsecret"' in content
    assert 'psk="secret"' not in content
    assert runner.commands == ["wpa_cli -i wlan0 reconfigure"]


def test_save_wifi_network_refuses_protected_network(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))

    result = network_service.save_wifi_network("bushnet", "other")

    assert not result["success"]
    assert result["client_error"]
    assert conf.read_text() == WPA_CONFIG


def test_save_wifi_network_reconfigure_failure_is_server_error(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))
    monkeypatch.setattr(network_service, "run_command", FakeRunner(default=make_result(success=False, stderr="FAIL")))

    result = network_service.save_wifi_network("Cafe", "latte")

    assert not result["success"]
    assert not result["client_error"]


def test_forget_wifi_network(tmp_path, monkeypatch):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))
    monkeypatch.setattr(network_service, "run_command", FakeRunner())

    result = network_service.forget_wifi_network("HomeNetwork")

    assert result["success"]
    assert 'ssid="HomeNetwork"' not in conf.read_text()


@pytest.mark.parametrize("ssid", ["bushnet", "NotSaved"])
def test_forget_wifi_network_client_errors(tmp_path, monkeypatch, ssid):
    conf = tmp_path / "wpa_supplicant.conf"
    conf.write_text(WPA_CONFIG)
    monkeypatch.setattr(network_service, "WPA_SUPPLICANT_FILE", str(conf))

    result = network_service.forget_wifi_network(ssid)

    assert not result["success"]
    assert result["client_error"]
    assert conf.read_text() == WPA_CONFIG


def test_get_current_wifi(monkeypatch):
    monkeypatch.setattr(network_service, "run_command", FakeRunner(default=make_result(stdout="HomeNetwork")))
    assert network_service.get_current_wifi() == {"success": True, "ssid": "HomeNetwork", "message": ""}


def test_get_current_wifi_not_associated_is_empty(monkeypatch):
    monkeypatch.setattr(network_service, "run_command", FakeRunner(default=make_result(success=False)))
    assert network_service.get_current_wifi() == {"success": True, "ssid": "", "message": ""}


def test_get_current_wifi_failure_with_output_is_error(monkeypatch):
    monkeypatch.setattr(
        network_service, "run_command",
        FakeRunner(default=make_result(success=False, stderr="wlan0: no such device"))
    )

    result = network_service.get_current_wifi()

    assert not result["success"]
    assert result["message"] == "wlan0: no such device"
