"""Pytest configuration and fixtures for portal-deploy tests."""

import logging
from pathlib import Path
from typing import Dict, List

import pytest

from portal_deploy.core.service_controller import ServiceCheck
from portal_deploy.models import DeployConfig, ServiceConfig

# Configure logging
logging.basicConfig(level=logging.INFO)

SITE_NAME = "admin.example.test"

ASSETS = {
    "index.html": "<!DOCTYPE html>\n<html><body>Billing admin</body></html>\n",
    "status.html": "<html><body>Status</body></html>\n",
    "newstatus.html": "<HTML><body>New status</body></HTML>\n",
    "shared/header.html": "<!-- GLOBAL HEADER -->\n<nav>menu</nav>\n",
    "shared/footer.html": "<!-- GLOBAL FOOTER -->\n<footer>2024</footer>\n",
    "shared/images/favicon.ico": b"\x00\x00\x01\x00shared-icon",
    "images/favicon.ico": b"\x00\x00\x01\x00icon",
}

NGINX_CONFIG = (
    "server {\n"
    "    listen 80;\n"
    f"    server_name {SITE_NAME};\n"
    "    root /var/www/billing;\n"
    "}\n"
)


class FakeController:
    """Service controller double recording every command"""

    name = "nginx"

    def __init__(self, candidate_ok=True, live_ok=True, reload_ok=True):
        self.candidate_ok = candidate_ok
        self.live_ok = live_ok
        self.reload_ok = reload_ok
        self.calls: List[str] = []
        self.candidates: List[str] = []

    def test_candidate(self, config_path: Path) -> ServiceCheck:
        self.calls.append("test_candidate")
        self.candidates.append(config_path.read_text())
        output = "" if self.candidate_ok else "nginx: [emerg] unexpected \"}\" in candidate"
        return ServiceCheck(ok=self.candidate_ok, output=output, command="nginx -t -c")

    def test_live(self) -> ServiceCheck:
        self.calls.append("test_live")
        output = "syntax is ok" if self.live_ok else "nginx: [emerg] unknown directive"
        return ServiceCheck(ok=self.live_ok, output=output, command="nginx -t")

    def reload(self) -> ServiceCheck:
        self.calls.append("reload")
        output = "" if self.reload_ok else "Job for nginx.service failed"
        return ServiceCheck(ok=self.reload_ok, output=output, command="systemctl reload nginx")


def write_file(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    return path


@pytest.fixture
def source_root(tmp_path):
    """Portal working tree with every default asset and the vhost file"""
    root = tmp_path / "src"
    for relative, content in ASSETS.items():
        write_file(root / "www" / relative, content)
    write_file(root / "nginx" / "sites-available" / SITE_NAME, NGINX_CONFIG)
    write_file(root / "README.md", "# Portal\n")
    (root / ".git").mkdir()
    return root


@pytest.fixture
def live_root(tmp_path):
    """Stand-in for the production filesystem"""
    root = tmp_path / "live"
    root.mkdir()
    return root


@pytest.fixture
def deploy_config(source_root, live_root, tmp_path):
    """Configuration deploying into the temporary live root"""
    return DeployConfig(
        source_root=source_root,
        site_name=SITE_NAME,
        web_target=live_root / "var" / "www" / "billing",
        config_target=live_root / "etc" / "nginx" / "sites-available",
        owner=None,
        group=None,
        service=ServiceConfig(),
        lock_dir=tmp_path / "locks",
    )


@pytest.fixture
def controller():
    return FakeController()


@pytest.fixture
def snapshot():
    """Capture every file below a directory as {relative path: bytes}"""
    def take(root: Path) -> Dict[str, bytes]:
        if not root.exists():
            return {}
        return {
            path.relative_to(root).as_posix(): path.read_bytes()
            for path in sorted(root.rglob("*"))
            if path.is_file()
        }
    return take


@pytest.fixture
def populated_live(deploy_config):
    """Live tree holding an older release of every file"""
    for relative in ASSETS:
        write_file(deploy_config.web_target / relative, f"old {relative}\n")
    write_file(deploy_config.config_dest, "server { listen 80; }  # old\n")
    return deploy_config
