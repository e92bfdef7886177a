from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

from deploy_modules.builder import Module

from .config import PLACEHOLDER, is_well_formed_url, placeholders
from .types import NetworkDeclaration


LOCAL_HOSTS = ('127.0.0.1', 'localhost', '0.0.0.0', '::1')


@dataclass(frozen=True)
class LintIssue:
    subject: str
    message: str

    def __str__(self) -> str:
        return f'{self.subject}: {self.message}'


def _dummy_substitute(template: str) -> str:
    return PLACEHOLDER.sub(lambda match: f'dummy{match.group(1).lower()}', template)


def _lint_url(name: str, template: str) -> list[LintIssue]:
    subject = f'network {name}'
    resolved = _dummy_substitute(template)
    if not is_well_formed_url(resolved):
        return [LintIssue(subject, 'rpc url does not resolve to a well-formed endpoint')]

    host = urlparse(resolved).hostname or ''
    if host not in LOCAL_HOSTS and not placeholders(template):
        return [LintIssue(subject, 'rpc url has no ${VAR} placeholder, provider key is likely hard-coded')]

    return []


def _lint_accounts(name: str, accounts: list[str]) -> list[LintIssue]:
    subject = f'network {name}'
    issues = []
    if len(accounts) != 1:
        issues.append(LintIssue(subject, f'expected exactly one signing account, got {len(accounts)}'))

    for i, account in enumerate(accounts):
        if PLACEHOLDER.fullmatch(account) is None:
            # do not echo the value, it may be a real key
            issues.append(LintIssue(subject, f'account #{i} is a literal, read it from the environment instead'))

    return issues


def lint_networks(networks: Mapping[str, NetworkDeclaration]) -> list[LintIssue]:
    issues: list[LintIssue] = []
    seen_urls: dict[str, str] = {}

    for name, declaration in networks.items():
        issues.extend(_lint_url(name, declaration['url']))
        issues.extend(_lint_accounts(name, declaration['accounts']))

        if (other := seen_urls.get(declaration['url'])) is not None:
            issues.append(LintIssue(f'network {name}', f'duplicates the rpc url of network {other}'))
        seen_urls.setdefault(declaration['url'], name)

    return issues


def lint_modules(modules: Iterable[Module]) -> list[LintIssue]:
    issues = []
    for module in modules:
        subject = f'module {module.id}'
        if len(module.futures) != 1:
            issues.append(LintIssue(subject, f'expected exactly one contract, got {len(module.futures)}'))
        if len(module.results) != 1:
            issues.append(LintIssue(subject, f'expected exactly one returned handle, got {len(module.results)}'))

    return issues
