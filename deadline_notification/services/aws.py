from typing import Optional

import boto3
from botocore.exceptions import ClientError


def get_client(service_name: str, region_name: Optional[str] = None):
    client_kwargs = {}
    if region_name:
        client_kwargs["region_name"] = region_name
    return boto3.client(service_name, **client_kwargs)


def error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))
