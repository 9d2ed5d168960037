# ccc -- Coding Container CLI
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
"""Tests for the firewall policy compiler."""

import os
import stat
from types import SimpleNamespace

from ccc.extensions.types import Extension
from ccc.firewall.compiler import (
    BASELINE_RULES,
    POLICY_FILENAME,
    compile_policy,
    write_policy,
)
from ccc.firewall.registry import compute_allowed_domains


def _domain_block(script: str) -> list[str]:
    lines = script.splitlines()
    start = lines.index('ALLOWED_DOMAINS="')
    end = lines.index('"', start + 1)
    return lines[start + 1 : end]


class TestCompilePolicy:
    """Rendering a domain set into init-firewall.sh."""

    def test_same_input_same_bytes(self):
        domains = {"b.example.com", "a.example.com", "c.example.com"}
        assert compile_policy(domains).render() == compile_policy(domains).render()

    def test_input_order_does_not_matter(self):
        first = compile_policy(["z.com", "a.com", "m.com"]).render()
        second = compile_policy(["m.com", "z.com", "a.com"]).render()
        assert first == second

    def test_domains_sorted_and_unique(self):
        policy = compile_policy(["b.com", "a.com", "b.com"])
        assert policy.domains == ("a.com", "b.com")
        assert _domain_block(policy.render()) == ["a.com", "b.com"]

    def test_three_source_scenario(self):
        agents = [SimpleNamespace(name="claude", firewall_domains=["api.anthropic.com"])]
        exts = [Extension(name="takopi", firewall_domains=["api.telegram.org"])]
        domains = compute_allowed_domains(agents, exts, ["custom.example.com"])
        script = compile_policy(domains).render()
        assert _domain_block(script) == [
            "api.anthropic.com",
            "api.telegram.org",
            "custom.example.com",
        ]
        assert script.rstrip().endswith('echo "Firewall initialized with allowed domains"')

    def test_empty_domain_set_still_default_deny(self):
        script = compile_policy([]).render()
        assert _domain_block(script) == []
        assert "iptables -A OUTPUT -j DROP" in script

    def test_malformed_domains_dropped(self):
        policy = compile_policy(["ok.com", "", "rm -rf /", 'x"; reboot'])
        assert policy.domains == ("ok.com",)

    def test_script_is_rerunnable(self):
        script = compile_policy(["a.com"]).render()
        assert "ipset create allowed_ips hash:ip -exist" in script
        assert "ipset flush allowed_ips" in script
        assert "iptables -F OUTPUT 2>/dev/null || true" in script

    def test_dns_resolution_loop(self):
        script = compile_policy(["a.com"]).render()
        assert 'dig +short "$domain" A' in script
        assert 'ipset add allowed_ips "$ip" -exist 2>/dev/null || true' in script

    def test_starts_with_shebang(self):
        script = compile_policy(["a.com"]).render()
        assert script.startswith("#!/bin/bash\nset -e\n")


class TestRuleOrder:
    """Baseline rules are appended in a fixed order."""

    EXPECTED = [
        "iptables -A OUTPUT -o lo -j ACCEPT",
        "iptables -A OUTPUT -m state --state ESTABLISHED,RELATED -j ACCEPT",
        "iptables -A OUTPUT -p udp --dport 53 -j ACCEPT",
        "iptables -A OUTPUT -p tcp --dport 53 -j ACCEPT",
        "iptables -A OUTPUT -p tcp --dport 22 -j ACCEPT",
        "iptables -A OUTPUT -p tcp --dport 443 -m set --match-set allowed_ips dst -j ACCEPT",
        "iptables -A OUTPUT -p tcp --dport 80 -m set --match-set allowed_ips dst -j ACCEPT",
        'iptables -A OUTPUT -j LOG --log-prefix "BLOCKED: " --log-level 4',
        "iptables -A OUTPUT -j DROP",
    ]

    def test_rendered_rules_in_order(self):
        script = compile_policy(["a.com"]).render()
        rules = [line for line in script.splitlines() if line.startswith("iptables -A")]
        assert rules == self.EXPECTED

    def test_structured_rules_match_render(self):
        policy = compile_policy(["a.com"])
        assert [r.render() for r in policy.rules] == self.EXPECTED

    def test_baseline_has_no_deny(self):
        assert all("DROP" not in r.args for r in BASELINE_RULES)

    def test_flush_before_first_rule(self):
        script = compile_policy(["a.com"]).render()
        assert script.index("iptables -F OUTPUT") < script.index("iptables -A OUTPUT")


class TestWritePolicy:
    """Writing init-firewall.sh to disk."""

    def test_writes_executable_file(self, tmp_path):
        policy = compile_policy(["a.com"])
        path = write_policy(policy, tmp_path / "out")
        assert path == tmp_path / "out" / POLICY_FILENAME
        assert path.read_text() == policy.render()
        mode = stat.S_IMODE(os.stat(path).st_mode)
        assert mode == 0o755

    def test_overwrites_previous_policy(self, tmp_path):
        write_policy(compile_policy(["old.com"]), tmp_path)
        path = write_policy(compile_policy(["new.com"]), tmp_path)
        text = path.read_text()
        assert "new.com" in text
        assert "old.com" not in text
