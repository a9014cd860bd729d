"""Client-side artifacts for a registered service: frpc.toml + run.bat.

Rendering is a pure function of the stored service and static settings, so
the same inputs always produce the same bytes. Key names and dotted nesting
follow the frpc TOML format verbatim.
"""

import json

from pydantic import BaseModel

from panda.core.config import Settings, get_settings
from panda.models.service import (
    PORT_MAPPED_TYPES,
    SECRET_KEY_TYPES,
    SUBDOMAIN_ROUTED_TYPES,
    Service,
)
from panda.services.allocator import base_host

CONFIG_FILENAME = "frpc.toml"
SCRIPT_FILENAME = "run.bat"
LOCAL_IP = "127.0.0.1"

STARTUP_SCRIPT_TEMPLATE = """@echo off
title Tunnel PANDA - {{SERVICE_NAME}}
echo ==========================================
echo        Demarrage du tunnel Panda
echo ==========================================
echo.
echo Service : {{SERVICE_NAME}} ({{PROTOCOL}})
echo Local   : 127.0.0.1:{{LOCAL_PORT}}
echo Public  : http://{{SUBDOMAIN}}.{{BASE_HOST}}
echo Serveur : {{SERVER_ADDR}}:{{SERVER_PORT}}
echo.
echo Lancement de frpc.exe avec frpc.toml...
echo Si le tunnel ne demarre pas, verifiez frpc.toml et que frpc.exe est dans ce dossier.
echo.

REM Lance frpc avec le fichier de config
frpc.exe -c frpc.toml

echo.
echo Tunnel arrete.
echo Si une erreur "authentication_failed" apparait, verifiez le token dans frpc.toml.
echo Appuyez sur une touche pour fermer.
pause >nul
exit
"""


class ClientConfig(BaseModel):
    service_id: str
    service_name: str
    public_url: str
    config_filename: str
    config: str
    script_filename: str
    script: str
    client_download_url: str


def _toml_str(value: str) -> str:
    # JSON string escaping is valid TOML basic-string escaping
    return json.dumps(value, ensure_ascii=False)


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


class ClientConfigRenderer:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def render_frpc_toml(self, service: Service) -> str:
        s = self.settings
        lines = [
            f"serverAddr = {_toml_str(s.frp_server_addr)}",
            f"serverPort = {s.frp_server_port}",
            "",
            'auth.method = "token"',
            f"auth.token = {_toml_str(s.frp_auth_token)}",
            "",
            'log.to = "console"',
            'log.level = "info"',
            "",
            "[[proxies]]",
            f"name = {_toml_str(service.name)}",
            f"type = {_toml_str(service.frp_type)}",
            f"localIP = {_toml_str(LOCAL_IP)}",
            f"localPort = {service.local_port}",
        ]
        if service.frp_type in SUBDOMAIN_ROUTED_TYPES:
            lines.append(f"subdomain = {_toml_str(service.subdomain)}")
        if service.frp_type in PORT_MAPPED_TYPES and service.remote_port is not None:
            lines.append(f"remotePort = {service.remote_port}")
        if service.frp_type in SECRET_KEY_TYPES:
            lines += [
                "# Choose a shared secret and use the same value on the visitor side:",
                '# secretKey = "<choose-a-shared-secret>"',
            ]
        lines += [
            "transport.tls.enable = true",
            f"transport.useEncryption = {_toml_bool(service.use_encryption)}",
            f"transport.useCompression = {_toml_bool(service.use_compression)}",
        ]
        return "\n".join(lines) + "\n"

    def render_startup_script(self, service: Service) -> str:
        s = self.settings
        substitutions = {
            "{{SERVICE_NAME}}": service.name,
            "{{PROTOCOL}}": service.frp_type.upper(),
            "{{LOCAL_PORT}}": str(service.local_port),
            "{{SUBDOMAIN}}": service.subdomain,
            "{{BASE_HOST}}": base_host(s),
            "{{SERVER_ADDR}}": s.frp_server_addr,
            "{{SERVER_PORT}}": str(s.frp_server_port),
        }
        script = STARTUP_SCRIPT_TEMPLATE
        for placeholder, value in substitutions.items():
            script = script.replace(placeholder, value)
        # cmd.exe expects CRLF line endings
        return script.replace("\n", "\r\n")

    def render(self, service: Service) -> ClientConfig:
        return ClientConfig(
            service_id=str(service.id),
            service_name=service.name,
            public_url=service.public_url,
            config_filename=CONFIG_FILENAME,
            config=self.render_frpc_toml(service),
            script_filename=SCRIPT_FILENAME,
            script=self.render_startup_script(service),
            client_download_url=self.settings.frpc_download_url,
        )
