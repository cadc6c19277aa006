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

from celery import Celery
from celery.signals import setup_logging

from innvo.config import configure_logging, settings
from innvo.tasks.celery_beat_config import CELERY_BEAT_SCHEDULE, CELERY_TIMEZONE

app = Celery(
    "innvo",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["innvo.tasks.reconcile_tasks"],
)
app.conf.beat_schedule = CELERY_BEAT_SCHEDULE
app.conf.timezone = CELERY_TIMEZONE
app.conf.task_ignore_result = True


@setup_logging.connect
def on_setup_logging(**kwargs):
    configure_logging()
