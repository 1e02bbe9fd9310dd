from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, Union

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RPCRequest(BaseModel):
    jsonrpc: str = "2.0"
    method: str
    params: Dict[str, Any] = {}
    id: Optional[Union[int, str]] = None


class RPCParams(BaseModel):
    address: Optional[str] = None
    signature: Optional[str] = None
    userName: Optional[str] = None
    image: Optional[str] = None
    tokenAddress: Optional[str] = None
    message: Optional[str] = None
    id: Optional[str] = None
    like: Optional[bool] = None
    limit: int = Field(0, ge=0)
    skip: int = Field(0, ge=0)


def rpc_success(request_id, result):
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def rpc_error(request_id, code: int, message: str):
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}
