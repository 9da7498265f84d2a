from enum import Enum

class FieldType(str, Enum):
    # Essentials
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    YESNO = "yesno"
    IMAGE_SELECT = "image-select"
    # Contact details
    FULLNAME = "fullname"
    ADDRESS = "address"
    PHONE = "phone"
    # Uploads
    IMAGE_UPLOAD = "image-upload"
    FILE_UPLOAD = "file-upload"
    DRAWING = "drawing"
    SIGNATURE = "signature"
    # Rating scales
    MATRIX = "matrix"
    OPINION_SCALE = "opinion-scale"
    STAR_RATING = "star-rating"
    RANKING = "ranking"
    # Date and time
    DATE = "date"
    TIME = "time"
    TIMER = "timer"
    # Legal / informational
    TERMS = "terms"
    WELCOME = "welcome"

class ContributionKind(str, Enum):
    MULTI_CHOICE = "multi_choice"    # sum of selected options
    BINARY = "binary"                # options[0] if affirmative else options[1]
    SINGLE_CHOICE = "single_choice"  # matching option
    DIRECT_SCALE = "direct_scale"    # the answer itself

class Standing(str, Enum):
    ADMIN = "admin"                  # administrator preview: view anything, never respond
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"

class PrincipalRole(str, Enum):
    OWNER = "owner"
    COLLABORATOR = "collaborator"
    INVITED_USER = "invited-user"
    ANONYMOUS = "anonymous"

class SyncState(str, Enum):
    UNSYNCED = "unsynced"    # local only
    PERSISTED = "persisted"  # remote write acknowledged
    STALE = "stale"          # may diverge from remote, needs reload

class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
