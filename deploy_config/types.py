from typing import TypedDict


class NetworkDeclaration(TypedDict):
    url: str  # may contain ${VAR} placeholders
    accounts: list[str]  # ${VAR} references, never literal keys


class NetworkConfig(TypedDict):
    name: str
    url: str
    accounts: list[str]
