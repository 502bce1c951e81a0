# services/ai/prompts.py
from typing import Iterable, Sequence

from utils.common_helpers import pct_change, plain_number


def build_advice_prompt(ticker: str, quantity: float, buy_price: float, current_price: float) -> str:
    return f"""
A user owns {plain_number(quantity)} shares of {ticker} stock. They bought in at ${plain_number(buy_price)} and it is now trading at ${plain_number(current_price)}.
As a financial assistant, should the user buy more, hold, or sell? Keep your answer to 1-2 sentences.
""".strip()


def build_recommendations_prompt(headlines: Sequence[str]) -> str:
    bullet_list = "\n".join(f"- {h}" for h in headlines)
    return f"""
Here are some recent financial news headlines:
{bullet_list}

Based on these, suggest 3-5 publicly traded companies (tickers only, like AAPL or TSLA) that look promising to invest in short term. For each, explain in 1 sentence why it's a good pick.
Return the result as JSON with format: [{{ "ticker": "AAPL", "reason": "..." }}]
""".strip()


def format_summary_line(ticker: str, quantity: float, buy_price: float, current_price: float) -> str:
    change = pct_change(current_price, buy_price)
    change_txt = f"{change:.1f}%" if change is not None else "n/a"
    return (
        f"{ticker}: {plain_number(quantity)} shares bought at ${buy_price:.2f}, "
        f"now ${current_price:.2f} ({change_txt})"
    )


def build_summary_prompt(lines: Iterable[str]) -> str:
    summary_data = "\n".join(lines)
    return f"""
Here is a user's stock portfolio performance today:
{summary_data}

Give a short 2-3 sentence summary on how the portfolio performed overall, and recommend what they should do today (buy, sell, hold, or adjust).
""".strip()
