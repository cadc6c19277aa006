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

"""
Celery Beat schedule for search index reconciliation
"""

from innvo.config import settings

CELERY_BEAT_SCHEDULE = {
    'reconcile-component-index': {
        'task': 'innvo.tasks.reconcile_tasks.reconcile_component_index_task',
        'schedule': settings.reconcile_interval_seconds,
        'options': {
            # avoid overlapping runs when the worker falls behind
            'expires': max(1.0, settings.reconcile_interval_seconds - 5),
        },
    },
}

CELERY_TIMEZONE = 'UTC'
