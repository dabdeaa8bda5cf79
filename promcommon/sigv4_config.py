"""Configuration for signing requests with AWS Signature Version 4."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

import yaml

_NULL_TAG = "tag:yaml.org,2002:null"


@dataclass
class SigV4Config:
    """SigV4 signing settings; empty values come from the default credential chain."""

    region: str = ""
    access_key: str = ""
    secret_key: str = field(default="", repr=False)
    profile: str = ""
    role_arn: str = ""

    def validate(self) -> None:
        """Raise ValueError if only one of access key and secret key is set."""
        if (self.access_key == "") != (self.secret_key == ""):
            raise ValueError(
                "must provide a AWS SigV4 Access key and Secret Key if credentials "
                "are specified in the SigV4 config"
            )

    @classmethod
    def from_yaml(cls, text: str) -> SigV4Config:
        """Parse and validate a YAML mapping, rejecting unknown and repeated keys."""
        try:
            node = yaml.compose(text, Loader=yaml.SafeLoader)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc)) from exc
        config = cls()
        if node is not None:
            if not isinstance(node, yaml.MappingNode):
                raise ValueError("sigv4 config must be a YAML mapping")
            known = {f.name for f in fields(cls)}
            seen: set[str] = set()
            for key_node, value_node in node.value:
                if not isinstance(key_node, yaml.ScalarNode):
                    raise ValueError("sigv4 config keys must be YAML scalars")
                key = key_node.value
                if key not in known:
                    raise ValueError(f"field {key} not found in sigv4 config")
                if key in seen:
                    raise ValueError(f'mapping key "{key}" already defined')
                seen.add(key)
                if not isinstance(value_node, yaml.ScalarNode):
                    raise ValueError(f"field {key} must be a string")
                value = "" if value_node.tag == _NULL_TAG else value_node.value
                setattr(config, key, value)
        config.validate()
        return config