"""
Reporting and Export Module for Shift Calendar

Writes calendar documents to disk and exports the monthly schedule grid
(employees by day) to PDF, Excel and CSV.
"""

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from datetime import date
import calendar
from pathlib import Path
from typing import Dict, List, Optional
import logging

from .ics import CalendarDocument, CalendarDocumentBuilder, month_name
from .models import Schedule
from .shift_codes import all_codes, lookup

logger = logging.getLogger(__name__)

# Cell background per code color tag, as RGB hex
COLOR_HEX: Dict[str, str] = {
    "blue": "BDD7EE",
    "light-green": "C6EFCE",
    "dark-green": "2E7D32",
    "black": "000000",
    "dark-grey": "424242",
    "purple": "D1C4E9",
    "pink": "F8BBD0",
    "dark-pink": "F48FB1",
    "yellow": "FFF59D",
    "orange": "FFCC80",
    "red": "FFCDD2",
    "teal": "B2DFDB",
}
DARK_COLOR_TAGS = {"black", "dark-grey", "dark-green"}

FILE_EXTENSIONS = {"pdf": "pdf", "excel": "xlsx", "csv": "csv", "ics": "ics"}


def days_in_month(schedule: Schedule) -> int:
    return calendar.monthrange(schedule.year, schedule.month)[1]


class ReportGenerator:
    """Builds grid reports for a schedule"""

    def __init__(self, locale: str = "fr"):
        self.locale = locale
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom report styles"""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=20,
            alignment=1  # Center alignment
        ))

    def _title(self, schedule: Schedule) -> str:
        return f"Planning - {month_name(schedule.month, self.locale).capitalize()} {schedule.year}"

    # DataFrames
    def create_grid_dataframe(self, schedule: Schedule) -> pd.DataFrame:
        """One row per employee in roster order, one column per day of the month"""
        last_day = days_in_month(schedule)
        data = []
        for employee in schedule.employees:
            row = {'Employee': employee.name}
            for day in range(1, last_day + 1):
                row[str(day)] = ''
            for entry in schedule.entries_for(employee.id):
                if 1 <= entry.date <= last_day:
                    row[str(entry.date)] = entry.code
            data.append(row)

        columns = ['Employee'] + [str(day) for day in range(1, last_day + 1)]
        return pd.DataFrame(data, columns=columns)

    def create_statistics_dataframe(self, schedule: Schedule) -> pd.DataFrame:
        """Number of days per code for each employee"""
        codes = [code.code for code in all_codes()]
        extra_codes = sorted({entry.code for entry in schedule.entries} - set(codes))

        data = []
        for employee in schedule.employees:
            row = {'Employee': employee.name}
            row.update({code: 0 for code in codes + extra_codes})
            for entry in schedule.entries_for(employee.id):
                row[entry.code] += 1
            row['Total'] = len(schedule.entries_for(employee.id))
            data.append(row)

        return pd.DataFrame(data, columns=['Employee'] + codes + extra_codes + ['Total'])

    def create_codes_dataframe(self) -> pd.DataFrame:
        data = []
        for code in all_codes():
            data.append({
                'Code': code.code,
                'Description': code.description,
                'Start': code.start_time,
                'End': code.end_time,
                'All_Day': code.is_all_day,
                'Overnight': code.is_overnight,
                'Color': code.color_tag
            })
        return pd.DataFrame(data)

    # Exports
    def export_schedule_pdf(self, schedule: Schedule, output_path: str) -> bool:
        """Export the month grid to PDF, cells colored by shift code"""
        try:
            doc = SimpleDocTemplate(
                output_path,
                pagesize=landscape(A4),
                rightMargin=0.4*inch,
                leftMargin=0.4*inch,
                topMargin=0.5*inch,
                bottomMargin=0.5*inch
            )

            story = [Paragraph(self._title(schedule), self.styles['CustomTitle']), Spacer(1, 12)]
            story.append(self._create_grid_table(schedule))

            legend = self._create_legend(schedule)
            if legend is not None:
                story.append(Spacer(1, 20))
                story.append(legend)

            doc.build(story)
            return True

        except Exception as e:
            logger.error(f"Error creating PDF: {e}", exc_info=True)
            return False

    def _create_grid_table(self, schedule: Schedule) -> Table:
        grid_df = self.create_grid_dataframe(schedule)
        last_day = days_in_month(schedule)

        header = ['']
        for day in range(1, last_day + 1):
            weekday = calendar.day_abbr[date(schedule.year, schedule.month, day).weekday()][:2]
            header.append(f"{day}\n{weekday}")
        data = [header] + grid_df.values.tolist()

        name_width = 1.6*inch
        day_width = (landscape(A4)[0] - 0.8*inch - name_width) / last_day
        table = Table(data, colWidths=[name_width] + [day_width] * last_day, repeatRows=1)

        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 7),
            ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ]

        for day in range(1, last_day + 1):
            if date(schedule.year, schedule.month, day).weekday() >= 5:
                style.append(('BACKGROUND', (day, 1), (day, -1), colors.whitesmoke))

        for row_index, row in enumerate(grid_df.itertuples(index=False), start=1):
            for col_index, code in enumerate(row[1:], start=1):
                shift_code = lookup(code) if code else None
                if shift_code is None:
                    continue
                hex_color = COLOR_HEX.get(shift_code.color_tag)
                if hex_color:
                    style.append(('BACKGROUND', (col_index, row_index), (col_index, row_index),
                                  colors.HexColor(f"#{hex_color}")))
                if shift_code.color_tag in DARK_COLOR_TAGS:
                    style.append(('TEXTCOLOR', (col_index, row_index), (col_index, row_index),
                                  colors.yellow))

        table.setStyle(TableStyle(style))
        return table

    def _create_legend(self, schedule: Schedule) -> Optional[Table]:
        """Legend of the codes appearing in the schedule"""
        used = {entry.code for entry in schedule.entries}
        codes = [code for code in all_codes() if code.code in used]
        if not codes:
            return None

        legend_data = [['Code', 'Description', 'Hours']]
        for code in codes:
            hours = "All day" if code.is_all_day else f"{code.start_time} - {code.end_time}"
            legend_data.append([code.code, code.description, hours])

        legend_table = Table(legend_data, colWidths=[0.6*inch, 2*inch, 1.2*inch])
        legend_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ]))
        return legend_table

    def export_schedule_excel(self, schedule: Schedule, output_path: str) -> bool:
        """Export grid, per-code statistics and the code list to an Excel workbook"""
        try:
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                self.create_grid_dataframe(schedule).to_excel(writer, sheet_name='Schedule', index=False)
                self.create_statistics_dataframe(schedule).to_excel(writer, sheet_name='Statistics', index=False)
                self.create_codes_dataframe().to_excel(writer, sheet_name='Codes', index=False)

                self._format_excel_worksheets(writer)

            return True

        except Exception as e:
            logger.error(f"Error exporting to Excel: {e}", exc_info=True)
            return False

    def _format_excel_worksheets(self, writer):
        """Header styling, column widths and code colors on the Schedule sheet"""
        from openpyxl.styles import Font, PatternFill

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)

        for worksheet in writer.sheets.values():
            for cell in worksheet[1]:
                cell.fill = header_fill
                cell.font = header_font

            for column in worksheet.columns:
                max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
                worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

        schedule_ws = writer.sheets['Schedule']
        for row in schedule_ws.iter_rows(min_row=2, min_col=2):
            for cell in row:
                shift_code = lookup(cell.value) if cell.value else None
                if shift_code is None or shift_code.color_tag not in COLOR_HEX:
                    continue
                hex_color = COLOR_HEX[shift_code.color_tag]
                cell.fill = PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")
                if shift_code.color_tag in DARK_COLOR_TAGS:
                    cell.font = Font(color="FFFF00")

    def export_schedule_csv(self, schedule: Schedule, output_path: str) -> bool:
        """Export the month grid to CSV"""
        try:
            self.create_grid_dataframe(schedule).to_csv(output_path, index=False)
            return True

        except Exception as e:
            logger.error(f"Error exporting to CSV: {e}", exc_info=True)
            return False


class ExportManager:
    """Manager class for handling all export operations"""

    def __init__(self, builder: Optional[CalendarDocumentBuilder] = None):
        self.builder = builder or CalendarDocumentBuilder()
        self.report_generator = ReportGenerator(locale=self.builder.locale)

    # Calendar files
    def write_document(self, document: CalendarDocument, filename: str, output_dir) -> Path:
        """Write a calendar document to output_dir/filename, keeping CRLF line endings"""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        file_path = output_path / filename

        with open(file_path, 'w', encoding='utf-8', newline='') as f:
            f.write(document.to_ics())

        logger.info(f"Wrote {len(document.events)} events to {file_path}")
        return file_path

    def export_employee_calendars(self, schedule: Schedule, output_dir) -> List[Path]:
        """One calendar file per employee with entries; employees without entries get none"""
        paths = []
        for employee, document in self.builder.build_all_employee_documents(schedule):
            filename = self.builder.employee_filename(schedule, employee)
            paths.append(self.write_document(document, filename, output_dir))
        return paths

    def export_global_calendar(self, schedule: Schedule, output_dir) -> Path:
        document = self.builder.build_aggregate_document(schedule)
        return self.write_document(document, self.builder.aggregate_filename(schedule), output_dir)

    # Grid reports
    def export_schedule(self, schedule: Schedule, format_type: str, output_path: str) -> bool:
        """Export the schedule grid in the specified format"""
        if format_type.lower() == 'pdf':
            return self.report_generator.export_schedule_pdf(schedule, output_path)
        elif format_type.lower() == 'excel':
            return self.report_generator.export_schedule_excel(schedule, output_path)
        elif format_type.lower() == 'csv':
            return self.report_generator.export_schedule_csv(schedule, output_path)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

    def get_default_filename(self, schedule: Schedule, format_type: str) -> str:
        """Generate default filename for a grid export"""
        extension = FILE_EXTENSIONS[format_type.lower()]
        return f"Planning_{month_name(schedule.month, self.builder.locale)}_{schedule.year}.{extension}"

    def batch_export(self, schedule: Schedule, output_dir,
                     formats: List[str] = None) -> Dict[str, bool]:
        """Export the schedule in multiple formats; 'ics' writes the global and individual calendars"""
        if formats is None:
            formats = ['ics', 'pdf', 'excel', 'csv']

        results = {}
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for format_type in formats:
            try:
                if format_type.lower() == 'ics':
                    self.export_global_calendar(schedule, output_path)
                    self.export_employee_calendars(schedule, output_path)
                    results[format_type] = True
                else:
                    file_path = output_path / self.get_default_filename(schedule, format_type)
                    results[format_type] = self.export_schedule(schedule, format_type, str(file_path))
            except Exception as e:
                logger.error(f"Error exporting {format_type}: {e}", exc_info=True)
                results[format_type] = False

        return results
