import argparse
import json

import pytest

from converge_harness import config, display
from converge_harness.run import _attribute, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (config.ENV_COOKBOOK_PATH, config.ENV_VERBOSE, config.ENV_NODE_NAME):
        monkeypatch.delenv(name, raising=False)


def test_main_prints_json(cookbook_path, write_recipe, capsys):
    write_recipe("base", "default", 'directory("/var/app")\nfile("/var/app/env", content=node["env"])\n')

    code = main([str(cookbook_path), "base", "--json", "--attribute", "env=prod"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert [(d["resource_type"], d["identifier"], d["action"]) for d in payload] == [
        ("directory", "/var/app", "create"),
        ("file", "/var/app/env", "create"),
    ]
    assert payload[1]["attributes"]["content"] == "prod"
    assert "resource" not in payload[0]


def test_main_prints_summary_table(cookbook_path, write_recipe, capsys, monkeypatch):
    monkeypatch.setattr(display.report, "width", 200)
    write_recipe("base", "default", 'package("git")\n')

    code = main([str(cookbook_path), "base"])

    assert code == 0
    out = capsys.readouterr().out
    assert "package[git]" in out
    assert "install" in out


def test_main_reports_resolution_errors(cookbook_path, capsys):
    code = main([str(cookbook_path), "missing"])

    assert code == 1
    assert "Cookbook 'missing'" in capsys.readouterr().out


def test_main_reports_invalid_resources(cookbook_path, write_recipe, capsys):
    write_recipe("base", "default", 'file("/x", action="launch")\n')

    assert main([str(cookbook_path), "base"]) == 1


def test_attribute_parsing():
    assert _attribute("port=8080") == ("port", 8080)
    assert _attribute("debug=true") == ("debug", True)
    assert _attribute("name=web01") == ("name", "web01")
    assert _attribute(" path = /srv") == ("path", " /srv")
    with pytest.raises(argparse.ArgumentTypeError):
        _attribute("novalue")
    with pytest.raises(argparse.ArgumentTypeError):
        _attribute("=value")


def test_main_reports_provenance_keywords(cookbook_path, write_recipe, capsys, monkeypatch):
    monkeypatch.setattr(display.report, "width", 200)
    write_recipe("base", "default", 'file("/x", cookbook_name="other")\n')

    assert main([str(cookbook_path), "base"]) == 1
    assert "cookbook_name cannot be set" in capsys.readouterr().out
