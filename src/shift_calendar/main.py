"""
Main Entry Point for Shift Calendar

Wires storage, the schedule store and the exporters together and exports
the current schedule of the default session.
"""

import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional

from shift_calendar.config import Settings, SettingsError, load_settings
from shift_calendar.data_manager import ScheduleStore, StoreSession
from shift_calendar.events import EventSynthesizer
from shift_calendar.ics import CalendarDocumentBuilder
from shift_calendar.reporting import ExportManager
from shift_calendar.storage import JsonFileStorage


def setup_logging(settings: Settings):
    """Setup application logging"""
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"shift_calendar_{datetime.now().strftime('%Y%m%d')}.log"

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )

    return logging.getLogger(__name__)


class ShiftCalendarApp:
    """Main application class"""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[StoreSession] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or Settings()
        self.session = session
        self.store = None
        self.builder = None
        self.export_manager = None

    def initialize(self) -> bool:
        """Initialize application components"""
        try:
            self.logger.info("Initializing Shift Calendar")

            data_dir = Path(self.settings.data_dir)
            data_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"Persistent data directory: {data_dir}")

            self.store = ScheduleStore(JsonFileStorage(data_dir), self.session)

            synthesizer = EventSynthesizer(uid_domain=self.settings.uid_domain)
            self.builder = CalendarDocumentBuilder(synthesizer,
                                                   product_id=self.settings.product_id,
                                                   locale=self.settings.locale)
            self.export_manager = ExportManager(self.builder)
            self.logger.info("Store and exporters initialized")

            return True

        except Exception as e:
            self.logger.error(f"Failed to initialize application: {e}", exc_info=True)
            return False

    def export_current_schedule(self, formats: List[str] = None) -> Dict[str, bool]:
        """Export the current schedule to the output directory"""
        schedule = self.store.get_current_schedule()
        if schedule is None:
            self.logger.warning("No current schedule selected, nothing to export")
            return {}

        self.logger.info(f"Exporting schedule {schedule.id} ({schedule.year}-{schedule.month:02d})")
        results = self.export_manager.batch_export(schedule, self.settings.output_dir, formats)
        for format_type, success in results.items():
            if not success:
                self.logger.error(f"Export to {format_type} failed")
        return results

    def run(self) -> bool:
        """Run a full export of the current schedule"""
        if not self.initialize():
            return False

        results = self.export_current_schedule()
        return bool(results) and all(results.values())


def main():
    """Main entry point"""
    try:
        settings = load_settings()
    except SettingsError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging(settings)
    logger.info("=" * 50)
    logger.info("Starting Shift Calendar export")
    logger.info("=" * 50)

    app = ShiftCalendarApp(settings)
    success = app.run()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
