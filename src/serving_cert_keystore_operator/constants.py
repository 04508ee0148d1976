"""Constants for the Serving Cert Keystore Operator."""

# Annotations on the Service
ANNOTATION_SERVING_CERT_SECRET_NAME = "service.alpha.openshift.io/serving-cert-secret-name"
ANNOTATION_CREATE_PKCS12 = "ykoer.github.com/serving-cert-create-pkcs12"

# Annotations on the Secret (set by the OpenShift service CA)
ANNOTATION_ORIGINATING_SERVICE_NAME = "service.alpha.openshift.io/originating-service-name"

# Secret data keys
SECRET_KEY_TLS_CERT = "tls.crt"
SECRET_KEY_TLS_KEY = "tls.key"
SECRET_KEY_PKCS12 = "tls.p12"
SECRET_KEY_PKCS12_PASSWORD = "tls-pkcs12-password"

# Resource Kinds
KIND_SERVICE = "Service"
KIND_SECRET = "Secret"

# Field Manager
FIELD_MANAGER = "serving-cert-keystore-operator"

# Controller name used in structured logs
CONTROLLER_NAME = "serving-cert-keystore-operator"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_KEYSTORE_CREATED = "KeystoreCreated"
EVENT_REASON_KEYSTORE_REMOVED = "KeystoreRemoved"
