"""
pem_loader — decode certificates and private keys from PEM text.

Reads PEM envelopes (BEGIN/END markers around base64 bodies) from a file or
an in-memory string, decodes each body to DER, and returns the objects kept
by a caller-supplied filter.

Errors are reported through the Railway-Oriented Result type rather than
exceptions.
"""

__version__ = "0.1.0"
