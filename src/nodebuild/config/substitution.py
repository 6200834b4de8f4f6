"""Substitution of `${...}` tokens in configuration values.

Supported tokens:

- `${name}`: configuration property `name`;
- `${env:NAME}`: environment variable `NAME`;
- `${event:key}`: entry `key` of the runtime event (when one is provided);
- `${key:-default}`: any of the above, with a fallback value;
- `$${...}`: escaped token, rendered as a literal `${...}`.

Tokens which cannot be resolved and have no fallback are left in place.
"""

import os
import re
from typing import Any, Dict, Mapping, Optional

__all__ = ["Substitutor"]

# Innermost token: no nested `${` inside
_TOKEN = re.compile(r"(?<!\$)\$\{([^${}]*)\}")

# Escaped token marker
_ESCAPED = "$${"

# Maximum number of nested substitution passes
MAX_DEPTH = 8


class Substitutor:
    """Resolves `${...}` tokens against properties, the environment and an
    optional runtime event."""

    def __init__(self, properties: Optional[Mapping[str, Any]] = None, environ=None):
        """Initialize the substitutor.

        Parameters
        ----------
        properties : Mapping[str, Any], optional
            Configuration properties
        environ : Mapping[str, str], optional
            Environment to read `${env:...}` tokens from. Defaults to
            `os.environ`.
        """
        self.properties: Dict[str, Any] = dict(properties or {})
        self.environ = os.environ if environ is None else environ

    def lookup(self, key: str, event: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        """Resolves one token body (without the fallback part).

        Parameters
        ----------
        key : str
            Token body, e.g. `env:HOME` or `name`
        event : Mapping[str, Any], optional
            Runtime event used for `event:` lookups

        Returns
        -------
        str
            Resolved value, or `None` if the token is unknown
        """
        prefix, sep, name = key.partition(":")
        if sep:
            if prefix == "env":
                return self.environ.get(name)
            if prefix == "event":
                if event is None or name not in event:
                    return None
                return str(event[name])

        if key in self.properties:
            return str(self.properties[key])

        return None

    def replace(self, value: Optional[str], event: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        """Substitutes all the tokens of a string.

        Parameters
        ----------
        value : str
            String to process. `None` is returned as is.
        event : Mapping[str, Any], optional
            Runtime event used for `event:` lookups

        Returns
        -------
        str
            String with its tokens substituted
        """
        if value is None or "${" not in value:
            return value

        # Protect escaped tokens from substitution
        marker = "\x00"
        value = value.replace(_ESCAPED, marker)

        def resolve(match):
            body = match.group(1)
            key, sep, default = body.partition(":-")
            result = self.lookup(key, event)
            if result is None:
                result = default if sep else None
            if result is None:
                # Leave unknown tokens untouched, shielded from the next pass
                return marker + body + "}"
            return result

        for _ in range(MAX_DEPTH):
            new_value = _TOKEN.sub(resolve, value)
            if new_value == value:
                break
            value = new_value

        return value.replace(marker, "${")
