"""
User settings (display filters) persisted as key/JSON rows.
"""
import copy
import logging
from typing import Dict

from config import Config
from models import db
from models.setting import Setting
from utils.errors import ValidationError

logger = logging.getLogger(__name__)


class SettingsService:

    def get_settings(self) -> Dict:
        """Stored settings merged over the defaults."""
        settings = copy.deepcopy(Config.DEFAULT_SETTINGS)
        for row in Setting.query.all():
            if isinstance(row.value, dict) and isinstance(settings.get(row.key), dict):
                settings[row.key].update(row.value)
            else:
                settings[row.key] = row.value
        return settings

    def get_max_satellites(self) -> int:
        return int(self.get_settings()['filters']['amount'])

    def update_settings(self, data: Dict) -> Dict:
        """
        Merge new values into the stored settings.

        Only known keys are accepted; filters.amount must be a positive
        integer.
        """
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        unknown = set(data) - set(Config.DEFAULT_SETTINGS)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        filters = data.get('filters')
        if filters is not None:
            if not isinstance(filters, dict):
                raise ValidationError("filters must be an object", field='filters')
            if 'amount' in filters:
                amount = filters['amount']
                if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
                    raise ValidationError("filters.amount must be a positive integer", field='amount')

        current = self.get_settings()
        for key, value in data.items():
            if isinstance(value, dict) and isinstance(current.get(key), dict):
                value = {**current[key], **value}
            row = db.session.get(Setting, key)
            if row is None:
                db.session.add(Setting(key=key, value=value))
            else:
                row.value = value
        db.session.commit()

        settings = self.get_settings()
        logger.info(f"Settings updated: {settings}")
        return settings


# Singleton instance
settings_service = SettingsService()
