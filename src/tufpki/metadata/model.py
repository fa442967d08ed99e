from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr
from typing import Any, Dict, List, Optional
from datetime import datetime


class KeyModel(BaseModel):
    """A public key entry of root.json 'keys'."""
    model_config = ConfigDict(extra="allow")

    keytype: StrictStr
    scheme: StrictStr = ""
    keyid_hash_algorithms: Optional[List[StrictStr]] = None
    keyval: Dict[str, Any]


class RoleModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    keyids: List[StrictStr]
    threshold: StrictInt


class RoleMetadata(BaseModel):
    """Common header of every signed TUF payload."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: StrictStr = Field(alias="_type")
    version: StrictInt = Field(ge=1)
    spec_version: StrictStr = ""
    expires: Optional[datetime] = None


class RootModel(RoleMetadata):
    consistent_snapshot: StrictBool = False
    # entries stay raw here; the trust database validates each one as it registers it
    keys: Dict[str, Dict[str, Any]]
    roles: Dict[str, Dict[str, Any]]
