# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from typing import Dict, Optional
from urllib.parse import urlencode

from innvo.config import settings
from innvo.schema.pagination import Page


def create_alert(message: str, param: str) -> Dict[str, str]:
    return {
        f"X-{settings.app_name}-alert": message,
        f"X-{settings.app_name}-params": param,
    }


def entity_creation_alert(entity_name: str, param: str) -> Dict[str, str]:
    return create_alert(f"{settings.app_name}.{entity_name}.created", param)


def entity_update_alert(entity_name: str, param: str) -> Dict[str, str]:
    return create_alert(f"{settings.app_name}.{entity_name}.updated", param)


def entity_deletion_alert(entity_name: str, param: str) -> Dict[str, str]:
    return create_alert(f"{settings.app_name}.{entity_name}.deleted", param)


def failure_alert(entity_name: Optional[str], error_key: str) -> Dict[str, str]:
    headers = {f"X-{settings.app_name}-error": f"error.{error_key}"}
    if entity_name:
        headers[f"X-{settings.app_name}-params"] = entity_name
    return headers


def _page_uri(base_url: str, page: int, size: int, query: Optional[str] = None) -> str:
    params = {}
    if query is not None:
        params["query"] = query
    params["page"] = page
    params["size"] = size
    return f"{base_url}?{urlencode(params)}"


def pagination_headers(page: Page, base_url: str, query: Optional[str] = None) -> Dict[str, str]:
    """X-Total-Count plus an RFC 5988 Link header with next/prev/last/first relations"""
    links = []
    if page.has_next:
        links.append(f'<{_page_uri(base_url, page.page + 1, page.size, query)}>; rel="next"')
    if page.has_previous:
        links.append(f'<{_page_uri(base_url, page.page - 1, page.size, query)}>; rel="prev"')
    last_page = page.total_pages - 1 if page.total_pages > 0 else 0
    links.append(f'<{_page_uri(base_url, last_page, page.size, query)}>; rel="last"')
    links.append(f'<{_page_uri(base_url, 0, page.size, query)}>; rel="first"')
    return {"X-Total-Count": str(page.total), "Link": ",".join(links)}
