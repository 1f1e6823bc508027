"""
HTML email rendering.

Builds the aptitude test invitation and free-form outreach messages.
All interpolated text is HTML-escaped.
"""

from html import escape
from typing import Any, Dict, Optional, Sequence

from ..schemas.assessment import AptitudeTest


PREVIEW_QUESTION_COUNT = 3

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: #065f46; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0; }
    .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px; }
    .button { display: inline-block; background: #065f46; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; margin: 20px 0; }
    .questions { background: white; padding: 20px; margin: 20px 0; border-radius: 8px; border-left: 4px solid #065f46; }
    .question { margin-bottom: 15px; padding-bottom: 15px; border-bottom: 1px solid #eee; }
    .question-title { font-weight: bold; color: #065f46; margin-bottom: 5px; }
    .question-meta { font-size: 12px; color: #666; }
    .footer { text-align: center; margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd; color: #666; font-size: 14px; }
"""


def invitation_subject(job_title: str) -> str:
    return f"Aptitude Test Invitation - {job_title} Position"


def _render_preview(questions: Sequence[Dict[str, Any]]) -> str:
    blocks = []
    for index, question in enumerate(questions[:PREVIEW_QUESTION_COUNT], 1):
        meta = []
        if question.get("timeLimit"):
            meta.append(f"Time: {escape(str(question['timeLimit']))} minutes")
        if question.get("difficulty"):
            meta.append(f"Difficulty: {escape(str(question['difficulty']))}")
        kind = str(question.get("type", "")).replace("_", " ").upper()
        blocks.append(
            '<div class="question">'
            f'<div class="question-title">{index}. '
            f'{escape(kind)} - {escape(str(question.get("skill", "")))}</div>'
            f'<div class="question-text">{escape(str(question.get("question", "")))}</div>'
            + (f'<div class="question-meta">{" | ".join(meta)}</div>' if meta else "")
            + "</div>"
        )
    remaining = len(questions) - PREVIEW_QUESTION_COUNT
    if remaining > 0:
        blocks.append(f"<p><em>...and {remaining} more questions</em></p>")
    return "\n".join(blocks)


def render_test_invitation(test: AptitudeTest, candidate_name: str, test_link: str) -> str:
    """Render the invitation email for one candidate of an assembled test."""
    return render_invitation(
        test.job_title,
        candidate_name,
        [q.to_public_dict() for q in test.questions],
        test_link,
        duration=test.duration,
        passing_score=test.passing_score,
    )


def render_invitation(
    job_title: str,
    candidate_name: str,
    questions: Sequence[Dict[str, Any]],
    test_link: str,
    duration: Optional[int] = None,
    passing_score: Optional[int] = None,
) -> str:
    """
    Render the invitation email from wire-format question dicts.

    Contains the job title, the question count, duration and passing score
    when known, a preview of the first questions and the call-to-action link.
    """
    details = [f"<li>Number of Questions: {len(questions)}</li>"]
    if duration is not None:
        details.append(f"<li>Duration: {duration} minutes</li>")
    if passing_score is not None:
        details.append(f"<li>Passing Score: {passing_score}%</li>")
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Aptitude Test Invitation</title>
    <style>{_STYLE}</style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        <h1>Aptitude Test Invitation</h1>
        <p>You've been invited to take an aptitude test</p>
      </div>
      <div class="content">
        <h2>Hello {escape(candidate_name or "Candidate")},</h2>
        <p>You have been invited to take an aptitude test for the <strong>{escape(job_title)}</strong> position.</p>
        <p><strong>Test Details:</strong></p>
        <ul>
          {"".join(details)}
        </ul>
        <div class="questions">
          <h3>Preview of Questions:</h3>
          {_render_preview(questions)}
        </div>
        <p><strong>Instructions:</strong></p>
        <ul>
          <li>Click the button below to start the test</li>
          <li>Make sure you have a stable internet connection</li>
          <li>You cannot pause or go back once started</li>
          <li>The test is submitted automatically when time runs out</li>
        </ul>
        <div style="text-align: center;">
          <a href="{escape(test_link, quote=True)}" class="button">Start Test</a>
        </div>
        <p><em>This link is unique to you and should not be shared with others.</em></p>
      </div>
      <div class="footer">
        <p>Best of luck with your test!</p>
        <p>If you have any technical issues, please contact our support team.</p>
      </div>
    </div>
  </body>
</html>
"""


def render_custom_email(subject: str, message: str, candidate_name: str = "", job_title: str = "") -> str:
    """Render a free-form outreach message, keeping its line breaks."""
    body = "<br>".join(escape(line) for line in message.splitlines())
    regarding = f"<p><em>Regarding: {escape(job_title)}</em></p>" if job_title else ""
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{escape(subject)}</title>
    <style>{_STYLE}</style>
  </head>
  <body>
    <div class="container">
      <div class="header"><h1>{escape(subject)}</h1></div>
      <div class="content">
        <h2>Hello {escape(candidate_name or "there")},</h2>
        {regarding}
        <p>{body}</p>
      </div>
      <div class="footer"><p>Hireloom Hiring Team</p></div>
    </div>
  </body>
</html>
"""
