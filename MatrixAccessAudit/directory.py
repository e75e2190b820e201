"""
directory.py

Active Directory lookups over LDAP (ldap3).

    lookup(key, "name")      key is a sAMAccountName
    lookup(key, "identity")  key is a distinguished name (managedBy values)

Returns a DirectoryUser / DirectoryGroup, or None when the object does not
exist. Anything else going wrong raises DirectoryError.

Group members come back already flattened: the in-chain matching rule makes
the server walk nested groups, so every member is a user.

The connection uses the SAFE_SYNC strategy, which is safe to share across
the worker threads of c_resolve_principals.
"""

import os

import ldap3
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from MatrixAccessAudit.errors import DirectoryError
from MatrixAccessAudit.models import DirectoryGroup, DirectoryMember, DirectoryUser

IN_CHAIN = "1.2.840.113556.1.4.1941"
PAGED_RESULTS_OID = "1.2.840.113556.1.4.319"
NO_SUCH_OBJECT = 32
PAGE_SIZE = 1000

OBJECT_ATTRIBUTES = ["objectClass", "displayName", "name", "sAMAccountName", "managedBy"]
MEMBER_ATTRIBUTES = ["displayName", "name", "sAMAccountName"]


def _first(value):
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _display_name(attributes):
    return _first(attributes.get("displayName")) or _first(attributes.get("name")) or ""


def _entries(response):
    return [e for e in response or [] if e.get("type") == "searchResEntry"]


def to_directory_object(attributes, members=()):
    classes = [str(c).lower() for c in attributes.get("objectClass") or []]
    managed_by = _first(attributes.get("managedBy")) or None
    if "group" in classes:
        return DirectoryGroup(_display_name(attributes), managed_by, tuple(members))
    return DirectoryUser(_display_name(attributes), managed_by)


def to_directory_member(attributes):
    return DirectoryMember(
        _display_name(attributes),
        _first(attributes.get("sAMAccountName")) or "",
    )


def strip_domain(name):
    """'CONTOSO\\jdoe' => 'jdoe'"""
    return name.split("\\", 1)[1] if "\\" in name else name


class LdapDirectory:

    def __init__(self, connection, base_dn):
        self.connection = connection
        self.base_dn = base_dn

    @classmethod
    def from_settings(cls, ldap_settings):
        password = os.environ.get(ldap_settings["password_env"], "")
        if not ldap_settings["server"] or not ldap_settings["base_dn"]:
            raise DirectoryError("ldap.server and ldap.base_dn must be configured")
        try:
            server = ldap3.Server(
                ldap_settings["server"],
                port=ldap_settings["port"],
                use_ssl=ldap_settings["use_ssl"],
                get_info=ldap3.ALL,
                connect_timeout=10,
            )
            connection = ldap3.Connection(
                server,
                user=ldap_settings["bind_dn"] or None,
                password=password or None,
                client_strategy=ldap3.SAFE_SYNC,
                auto_bind=True,
            )
        except LDAPException as e:
            raise DirectoryError(f"Cannot bind to {ldap_settings['server']}: {e}") from e
        return cls(connection, ldap_settings["base_dn"])

    def close(self):
        self.connection.unbind()

    def _search(self, base, search_filter, attributes, scope=ldap3.SUBTREE):
        """All entries of a (paged) search; None when `base` does not exist."""
        entries = []
        cookie = None
        while True:
            try:
                status, result, response, _ = self.connection.search(
                    base,
                    search_filter,
                    search_scope=scope,
                    attributes=attributes,
                    paged_size=PAGE_SIZE,
                    paged_cookie=cookie,
                )
            except LDAPException as e:
                raise DirectoryError(f"LDAP search '{search_filter}' under '{base}' failed: {e}") from e
            if not status:
                code = result.get("result")
                if code == NO_SUCH_OBJECT:
                    return None
                if code != 0:
                    raise DirectoryError(
                        f"LDAP search '{search_filter}' under '{base}' failed: "
                        f"{result.get('description')} {result.get('message', '')}".rstrip()
                    )
            entries.extend(_entries(response))
            controls = result.get("controls") or {}
            cookie = controls.get(PAGED_RESULTS_OID, {}).get("value", {}).get("cookie")
            if not cookie:
                return entries

    def _members(self, group_dn):
        search_filter = (
            f"(&(objectCategory=person)(objectClass=user)"
            f"(memberOf:{IN_CHAIN}:={escape_filter_chars(group_dn)}))"
        )
        entries = self._search(self.base_dn, search_filter, MEMBER_ATTRIBUTES) or []
        members = [to_directory_member(e["attributes"]) for e in entries]
        return sorted(members, key=lambda m: (m.display_name.lower(), m.principal_name))

    def _to_object(self, entry):
        attributes = entry["attributes"]
        obj = to_directory_object(attributes)
        if isinstance(obj, DirectoryGroup):
            obj = to_directory_object(attributes, self._members(entry["dn"]))
        return obj

    def lookup(self, key, mode="name"):
        if mode == "identity":
            entries = self._search(key, "(objectClass=*)", OBJECT_ATTRIBUTES, scope=ldap3.BASE)
        elif mode == "name":
            search_filter = (
                f"(&(|(objectClass=user)(objectClass=group))"
                f"(sAMAccountName={escape_filter_chars(strip_domain(key))}))"
            )
            entries = self._search(self.base_dn, search_filter, OBJECT_ATTRIBUTES)
        else:
            raise ValueError(f"Unknown lookup mode: {mode}")
        if not entries:
            return None
        return self._to_object(entries[0])
