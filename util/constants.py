class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    INFO = V1 + "/info"
    GET_MAPPING = V1 + "/get-mapping-for-object"
    MAP = V1 + "/map-object-to-target"
    UNMAP = V1 + "/unmap-object-to-target"
    REVERSE_MAPPINGS = V1 + "/get-reverse-mappings-for-target"
    ALLOCATE = V1 + "/allocate-target-and-map"
    APPS = V1 + "/apps"
    APP = APPS + "/{app_id}"
    APP_DELETE = APP + "/delete"


class Headers:
    APP_ID = "X-App-Id"
    ACCESS_TOKEN = "X-Access-Token"
