# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of ccc.
#
# ccc is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
#    You may use, modify, and distribute this file under AGPL-3.0.
#    See LICENSE for the full text.
#
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#    For proprietary use, SaaS deployment, or enterprise licensing.
#    See LICENSE-ENTERPRISE.md or contact info@phoenixlink.co.za
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""ccc command-line entry point.

    ccc [target] [session]       attach to a session (default command)
    ccc build|start|restart [target]
    ccc status [target] [--json]
    ccc ls|logs|update [target]
    ccc kill <session> [target]
    ccc remote add|rm|ls|default
    ccc agent ls|enable|disable|default
    ccc ext ls|enable|disable|start|stop
    ccc firewall ls|show|allow|deny|write

A target is ``local``, ``@name`` (a registered remote or alias) or a bare
``user@host``.  Without one, the configured default is used.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from ccc import __version__
from ccc.agents.loader import (
    disable_agent,
    enable_agents,
    is_agent_enabled,
    list_available_agents,
    load_agents,
)
from ccc.agents.types import Agent
from ccc.cli.console import CccConsole
from ccc.config import (
    LOCAL_TARGET,
    ConfigStore,
    add_remote,
    add_user_domain,
    remove_remote,
    remove_user_domain,
    resolve_target,
    set_default,
    set_default_agent,
)
from ccc.core.logging import configure_logging
from ccc.deploy.container import DEFAULT_SESSION, BuildOptions, ContainerManager
from ccc.deploy.executor import create_executor
from ccc.errors import CccError, CommandFailed
from ccc.extensions import skills_manager
from ccc.extensions.host_manager import HostExtensionManager
from ccc.extensions.loader import (
    disable_extension,
    enable_extensions,
    is_extension_enabled,
    list_available_extensions,
    load_extensions,
)
from ccc.extensions.mcp_injector import inject_mcp_config_to_all, remove_mcp_config_from_all
from ccc.extensions.types import ExtensionType
from ccc.firewall.compiler import POLICY_FILENAME, compile_policy, write_policy
from ccc.firewall.registry import collect_sources, domain_origins, merge_sources

logger = logging.getLogger("ccc.cli.app")

COMMANDS = {
    "attach",
    "build",
    "start",
    "restart",
    "status",
    "ls",
    "kill",
    "logs",
    "update",
    "remote",
    "agent",
    "ext",
    "firewall",
}

console = CccConsole()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _store(args: argparse.Namespace) -> ConfigStore:
    return ConfigStore(getattr(args, "config", None))


def _manager(args: argparse.Namespace, target: str | None) -> ContainerManager:
    store = _store(args)
    host = resolve_target(target, store)
    config = store.load()
    executor = create_executor(host, config.output_dir if host is None else None)
    return ContainerManager(executor, config.container_name)


def _target_label(manager: ContainerManager) -> str:
    return manager.executor.label


def _select_agent(args: argparse.Namespace, agents: dict[str, Agent]) -> Agent | None:
    name = getattr(args, "agent", None) or _store(args).load().default_agent
    if name:
        if name not in agents:
            raise CccError(f"Unknown agent: {name} (enabled: {', '.join(agents) or 'none'})")
        return agents[name]
    return next(iter(agents.values()), None)


def _current_policy(args: argparse.Namespace):
    config = _store(args).load()
    sources = collect_sources(
        load_agents().values(), load_extensions().values(), config.firewall_domains
    )
    return sources, compile_policy(merge_sources(sources))


# ---------------------------------------------------------------------------
# Container commands
# ---------------------------------------------------------------------------
def cmd_attach(args: argparse.Namespace) -> int:
    target, session = args.target, args.session
    # A lone positional that is not a target names the session
    if target and session is None and not _looks_like_target(target):
        target, session = None, target
    session = session or DEFAULT_SESSION

    manager = _manager(args, target)
    yolo = args.yolo is not None
    prompt = args.yolo if isinstance(args.yolo, str) else None
    # Plain attach never runs an agent
    agent = _select_agent(args, load_agents()) if yolo or args.agent else None
    if yolo and agent is None:
        raise CccError("--yolo needs an enabled agent. Run 'ccc agent enable <name>'.")

    return manager.attach(
        session, agent=agent, no_firewall=args.no_firewall, yolo=yolo, prompt=prompt
    )


def _looks_like_target(value: str) -> bool:
    return value == LOCAL_TARGET or "@" in value


def cmd_build(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    _, policy = _current_policy(args)
    if manager.executor.is_remote:
        manager.executor.require_reachable()
        manager.executor.exec(
            f"cat > {POLICY_FILENAME} && chmod 755 {POLICY_FILENAME}",
            input_data=policy.render(),
        )
    else:
        write_policy(policy, manager.executor.work_dir)
    manager.build(BuildOptions(no_cache=args.no_cache))
    console.print_success(f"Container built ({_target_label(manager)})")
    return 0


def cmd_start(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    manager.start(force_recreate=args.force_recreate)
    console.print_success(f"Container started ({_target_label(manager)})")
    console.print_hint("Connect with: ccc" + (f" {args.target}" if args.target else ""))
    return 0


def cmd_restart(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    manager.restart()
    console.print_success(f"Container restarted ({_target_label(manager)})")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    status = manager.get_status(
        agents=load_agents().values(),
        extensions=load_extensions().values(),
    )
    if args.json:
        print(json.dumps(status.to_dict(), indent=2))
    else:
        console.print_status(status, _target_label(manager))
    return 0 if status.reachable else 1


def cmd_ls(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    try:
        sessions = manager.list_sessions()
    except CommandFailed:
        console.print_info("Container not running or no sessions")
        console.print_hint("Start the container: ccc start")
        return 1
    console.print_sessions(sessions)
    return 0


def cmd_kill(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    manager.kill_session(args.session)
    console.print_success(f"Session '{args.session}' killed")
    return 0


def cmd_logs(args: argparse.Namespace) -> int:
    return _manager(args, args.target).show_logs()


def cmd_update(args: argparse.Namespace) -> int:
    manager = _manager(args, args.target)
    agents = load_agents()
    if args.agent:
        if args.agent not in agents:
            raise CccError(f"Unknown agent: {args.agent}")
        selected = [agents[args.agent]]
    else:
        selected = list(agents.values())
    if not selected:
        console.print_info("No agents enabled")
        return 0

    results = manager.update_agents(selected)
    for name, ok in results.items():
        console.print_item(f"{name} updated" if ok else f"Failed to update {name}", ok=ok)
    return 0 if all(results.values()) else 1


# ---------------------------------------------------------------------------
# remote
# ---------------------------------------------------------------------------
def cmd_remote(args: argparse.Namespace) -> int:
    store = _store(args)
    if args.remote_cmd == "add":
        add_remote(args.name, args.host, args.alias or [], store=store)
        console.print_success(f"Remote '{args.name}' added ({args.host})")
        return 0
    if args.remote_cmd == "rm":
        if not remove_remote(args.name, store=store):
            raise CccError(f"Unknown remote: {args.name}")
        console.print_success(f"Remote '{args.name}' removed")
        return 0
    if args.remote_cmd == "default":
        if args.target != LOCAL_TARGET:
            resolve_target(args.target, store)
        set_default(args.target, store=store)
        console.print_success(f"Default target set to {args.target}")
        return 0

    config = store.load()
    if not config.remotes:
        console.print_info("No remotes configured")
        console.print_hint("Add a remote: ccc remote add <name> <user@host>")
        return 0
    for name, remote in config.remotes.items():
        marker = " (default)" if config.default == f"@{name}" else ""
        aliases = f"  aliases: {', '.join(remote.alias)}" if remote.alias else ""
        print(f"    @{name}  {remote.host}{marker}{aliases}")
    return 0


# ---------------------------------------------------------------------------
# agent
# ---------------------------------------------------------------------------
def cmd_agent(args: argparse.Namespace) -> int:
    if args.agent_cmd == "enable":
        enabled = enable_agents(args.names)
        for name in enabled:
            console.print_item(f"Enabled {name}")
        missing = set(args.names) - set(enabled)
        if enabled and not _store(args).load().default_agent:
            set_default_agent(enabled[0], store=_store(args))
        if missing:
            raise CccError(f"Unknown agent template(s): {', '.join(sorted(missing))}")
        console.print_hint("Rebuild the container to apply: ccc build")
        return 0
    if args.agent_cmd == "disable":
        if not disable_agent(args.name):
            raise CccError(f"Agent not enabled: {args.name}")
        console.print_success(f"Disabled {args.name}")
        return 0
    if args.agent_cmd == "default":
        if not is_agent_enabled(args.name):
            raise CccError(f"Agent not enabled: {args.name}")
        set_default_agent(args.name, store=_store(args))
        console.print_success(f"Default agent set to {args.name}")
        return 0

    default = _store(args).load().default_agent
    for template in list_available_agents():
        state = "enabled" if is_agent_enabled(template.name) else "available"
        marker = " (default)" if template.name == default else ""
        print(f"    {template.name:<10} {state:<10} {template.description}{marker}")
    return 0


# ---------------------------------------------------------------------------
# ext
# ---------------------------------------------------------------------------
def cmd_ext(args: argparse.Namespace) -> int:
    if args.ext_cmd == "enable":
        enabled = enable_extensions(args.names)
        extensions = load_extensions()
        agents = list(load_agents().values())
        for name in enabled:
            ext = extensions.get(name)
            if ext is None:
                continue
            if ext.type == ExtensionType.MCP:
                injected = inject_mcp_config_to_all(agents, ext)
                console.print_item(f"Enabled {name} (mcp: {', '.join(injected) or 'no agents'})")
            elif ext.type == ExtensionType.SKILL:
                skills_manager.install_skill(ext)
                console.print_item(f"Enabled {name} (skill)")
            else:
                console.print_item(f"Enabled {name} (host)")
                console.print_hint(f"Start it with: ccc ext start {name}")
        missing = set(args.names) - set(enabled)
        if missing:
            raise CccError(f"Unknown extension template(s): {', '.join(sorted(missing))}")
        console.print_hint("Rebuild the container to apply firewall changes: ccc build")
        return 0

    if args.ext_cmd == "disable":
        ext = load_extensions().get(args.name)
        if not disable_extension(args.name):
            raise CccError(f"Extension not enabled: {args.name}")
        if ext is not None and ext.type == ExtensionType.MCP:
            remove_mcp_config_from_all(load_agents().values(), ext.name)
        elif ext is not None and ext.type == ExtensionType.SKILL:
            skills_manager.remove_skill(ext)
        console.print_success(f"Disabled {args.name}")
        return 0

    if args.ext_cmd in ("start", "stop"):
        ext = load_extensions().get(args.name)
        if ext is None or ext.type != ExtensionType.HOST:
            raise CccError(f"Not an enabled host extension: {args.name}")
        manager = _manager(args, args.target)
        hosts = HostExtensionManager(manager.executor, manager.container_name)
        if args.ext_cmd == "start":
            ok = hosts.install(ext) and hosts.start(ext)
        else:
            ok = hosts.stop(ext)
        verb = "started" if args.ext_cmd == "start" else "stopped"
        console.print_item(f"{ext.name} {verb}" if ok else f"Could not {args.ext_cmd} {ext.name}", ok=ok)
        return 0 if ok else 1

    for template in list_available_extensions():
        state = "enabled" if is_extension_enabled(template.name) else "available"
        print(f"    {template.name:<12} {template.type.value:<6} {state:<10} {template.description}")
    skills = skills_manager.list_installed_skills()
    if skills:
        print(f"    Installed skills: {', '.join(skills)}")
    return 0


# ---------------------------------------------------------------------------
# firewall
# ---------------------------------------------------------------------------
def cmd_firewall(args: argparse.Namespace) -> int:
    store = _store(args)
    if args.firewall_cmd == "allow":
        if add_user_domain(args.domain, store=store):
            console.print_success(f"Allowed {args.domain}")
        else:
            console.print_info(f"{args.domain} is already allowed")
        console.print_hint("Apply with: ccc firewall write && ccc restart")
        return 0
    if args.firewall_cmd == "deny":
        if not remove_user_domain(args.domain, store=store):
            raise CccError(f"{args.domain} is not a user firewall rule")
        console.print_success(f"Removed {args.domain}")
        return 0

    sources, policy = _current_policy(args)
    if args.firewall_cmd == "show":
        sys.stdout.write(policy.render())
        return 0
    if args.firewall_cmd == "write":
        path = write_policy(policy, args.output or store.load().output_dir)
        console.print_success(f"Wrote {path} ({len(policy.domains)} domains)")
        return 0

    origins = domain_origins(sources)
    if not origins:
        console.print_info("No domains allowed")
        return 0
    for domain, labels in origins.items():
        print(f"    {domain:<40} {', '.join(labels)}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccc",
        description="Coding Container CLI -- coding agents in Docker with firewall support",
    )
    parser.add_argument("--version", action="version", version=f"ccc {__version__}")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level echoed to stderr (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("attach", help="Attach to a session (default command)")
    p.add_argument("target", nargs="?", help="local, @remote or user@host; or a session name")
    p.add_argument("session", nargs="?", help=f"Session name (default: {DEFAULT_SESSION})")
    p.add_argument("-a", "--agent", help="Agent to use (default: from config)")
    p.add_argument("--no-firewall", action="store_true", help="Disable the firewall first")
    p.add_argument(
        "--yolo",
        nargs="?",
        const=True,
        default=None,
        metavar="PROMPT",
        help="Run the agent with auto-permissions (optional prompt)",
    )
    p.set_defaults(func=cmd_attach)

    p = sub.add_parser("build", help="Build the container image")
    p.add_argument("target", nargs="?")
    p.add_argument("--no-cache", action="store_true")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("start", help="Start the container")
    p.add_argument("target", nargs="?")
    p.add_argument("--force-recreate", action="store_true")
    p.set_defaults(func=cmd_start)

    p = sub.add_parser("restart", help="Restart the container")
    p.add_argument("target", nargs="?")
    p.set_defaults(func=cmd_restart)

    p = sub.add_parser("status", help="Show container status")
    p.add_argument("target", nargs="?")
    p.add_argument("--json", action="store_true", help="Print status as JSON")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("ls", help="List sessions")
    p.add_argument("target", nargs="?")
    p.set_defaults(func=cmd_ls)

    p = sub.add_parser("kill", help="Kill a session")
    p.add_argument("session")
    p.add_argument("target", nargs="?")
    p.set_defaults(func=cmd_kill)

    p = sub.add_parser("logs", help="Follow container logs")
    p.add_argument("target", nargs="?")
    p.set_defaults(func=cmd_logs)

    p = sub.add_parser("update", help="Reinstall agents in the container")
    p.add_argument("target", nargs="?")
    p.add_argument("-a", "--agent", help="Only this agent (default: all)")
    p.set_defaults(func=cmd_update)

    p = sub.add_parser("remote", help="Manage remote hosts")
    rsub = p.add_subparsers(dest="remote_cmd")
    r = rsub.add_parser("add")
    r.add_argument("name")
    r.add_argument("host", help="user@host")
    r.add_argument("--alias", action="append", help="Additional name (repeatable)")
    r = rsub.add_parser("rm")
    r.add_argument("name")
    rsub.add_parser("ls")
    r = rsub.add_parser("default")
    r.add_argument("target", help="local or @name")
    p.set_defaults(func=cmd_remote, remote_cmd="ls")

    p = sub.add_parser("agent", help="Manage coding agents")
    asub = p.add_subparsers(dest="agent_cmd")
    asub.add_parser("ls")
    a = asub.add_parser("enable")
    a.add_argument("names", nargs="+")
    a = asub.add_parser("disable")
    a.add_argument("name")
    a = asub.add_parser("default")
    a.add_argument("name")
    p.set_defaults(func=cmd_agent, agent_cmd="ls")

    p = sub.add_parser("ext", help="Manage extensions")
    esub = p.add_subparsers(dest="ext_cmd")
    esub.add_parser("ls")
    e = esub.add_parser("enable")
    e.add_argument("names", nargs="+")
    e = esub.add_parser("disable")
    e.add_argument("name")
    for action in ("start", "stop"):
        e = esub.add_parser(action)
        e.add_argument("name")
        e.add_argument("target", nargs="?")
    p.set_defaults(func=cmd_ext, ext_cmd="ls")

    p = sub.add_parser("firewall", help="Inspect and edit the firewall allowlist")
    fsub = p.add_subparsers(dest="firewall_cmd")
    fsub.add_parser("ls")
    fsub.add_parser("show")
    f = fsub.add_parser("allow")
    f.add_argument("domain")
    f = fsub.add_parser("deny")
    f.add_argument("domain")
    f = fsub.add_parser("write")
    f.add_argument("-o", "--output", default=None, help="Output directory")
    p.set_defaults(func=cmd_firewall, firewall_cmd="ls")

    return parser


def normalize_argv(argv: list[str]) -> list[str]:
    """Insert the default ``attach`` command when none is given."""
    for i, arg in enumerate(argv):
        if arg in ("-h", "--help", "--version"):
            return argv
        if arg in ("--config", "--log-level"):
            continue
        if i > 0 and argv[i - 1] in ("--config", "--log-level"):
            continue
        if arg.startswith("--config=") or arg.startswith("--log-level="):
            continue
        if arg in COMMANDS:
            return argv
        return argv[:i] + ["attach"] + argv[i:]
    return argv + ["attach"]


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(normalize_argv(argv))
    configure_logging(args.log_level)

    try:
        return args.func(args)
    except CccError as exc:
        logger.debug("Command failed", exc_info=True)
        console.print_error(str(exc))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
