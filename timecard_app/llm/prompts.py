"""
LLM prompt templates for time card extraction.

The model classifies each page as a table (time cards, passbooks, forms)
or free text (letters, memos) and returns a JSON array of records.
"""

EXAMPLE_OUTPUT = '''[
  {
    "type": "table",
    "title": {"yearMonth": "2025年 8月", "name": "山田 花子"},
    "headers": ["日", "曜日", "出勤", "退勤", "備考"],
    "data": [
      ["1", "金", "9:05", "18:00", ""],
      ["2", "土", "", "", "公休"]
    ]
  },
  {
    "type": "transcription",
    "fileName": "memo_p1",
    "content": "8月の勤怠について\\n..."
  }
]'''


EXTRACTION_PROMPT = '''You are a precise OCR engine. Read the attached page and return its content as JSON.

# General rules
- Output ONLY a valid JSON array. No explanations, greetings or markdown fences.
- If the page is unreadable or empty, output an empty array: []
- First decide whether the page is a TABLE (time card, passbook, invoice: rows and columns)
  or a TRANSCRIPTION (letter, memo, article: free text).
- If the page holds several documents, output one object per document.

# Table records
- "type": always "table".
- "title.yearMonth": the year and month of the whole document (e.g. "2025年 8月"), or "".
- "title.name": the person's name or the subject of the document, or "".
- "headers": the column headers (e.g. "日", "出勤", "退勤") as strings.
- "data": every row as an array of strings.
  - Copy characters, digits and symbols exactly as printed. Never drop times like "9:05" or numbers like "1.00".
  - Empty cells are "".
  - Every row must have exactly as many elements as "headers"; pad with "" when needed.
  - "data" must be an array of arrays of strings.

# Transcription records
- "type": always "transcription".
- "fileName": always "{page_name}".
- "content": all text on the page as one string, keeping line breaks.

# Example output
{example}
'''


def get_extraction_prompt(page_name: str) -> str:
    """
    Get the extraction prompt for one page.

    Args:
        page_name: Name reported back in transcription records

    Returns:
        Formatted prompt string
    """
    return EXTRACTION_PROMPT.format(page_name=page_name, example=EXAMPLE_OUTPUT)
