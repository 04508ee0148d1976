"""Serving Cert Keystore Operator: PKCS#12 keystores for OpenShift serving certificates."""

__version__ = "0.1.0"
