from typing import Iterable

from ..models.sessions import Contact

VCARD_MEDIA_TYPE = "text/vcard"
VCARD_FILENAME = "contacts.vcf"


def render_vcard(contact: Contact) -> str:
    return (
        "BEGIN:VCARD\r\n"
        "VERSION:3.0\r\n"
        f"FN:{contact.name}\r\n"
        f"TEL:{contact.phone}\r\n"
        "END:VCARD\r\n"
    )


def render_vcards(contacts: Iterable[Contact]) -> str:
    """Concatenate one vCard 3.0 entry per contact, in order."""
    return "".join(render_vcard(c) for c in contacts)
