"""
Synthetic statements for tests, laid out the way the real PDFs are.

Coordinates use a bottom-left origin on a 612x792 page.
"""
from ..core.page import Page, PageText, Statement


def text(value, x, y, width=None, height=10):
    return PageText(value, x, y, len(value) * 5 if width is None else width, height)


def right_aligned(value, right, y, width, height=10):
    return PageText(value, right - width, y, width, height)


def statement(*pages):
    return Statement(Page(number, texts) for number, texts in enumerate(pages, 1))


def schwab_statement(ending_balance="$965.00", deposits="$25.00"):
    summary_values = [
        "$1,000.00", deposits, "$0.00", "($50.00)", "($10.00)", ending_balance,
    ]
    summary_labels = [
        "Beginning Balance", "Deposits and Credits", "Interest Paid",
        "Withdrawals and Other Debits", "Other Fees", "Ending Balance",
    ]

    page1 = [
        text("Statement Period", 400, 740, 80),
        text("January 1-31, 2024", 400, 726, 90),
        text("Investor Checking", 40, 700, 90),
        text("Account Number: 4400-12345678", 200, 700, 150),
    ]
    for row, (label, value) in enumerate(zip(summary_labels, summary_values)):
        y = 680 - row * 14
        page1.append(text(label, 40, y, 120))
        page1.append(right_aligned(value, 300, y, len(value) * 5))

    page1 += [
        text("Activity", 40, 560, 50, 12),
        text("Date", 40, 540, 25),
        text("Posted", 40, 530, 30),
        text("Description", 100, 530, 60),
        text("Debits", 330, 530, 30),
        text("Credits", 385, 530, 35),
        text("Balance", 440, 530, 40),

        text("1/01", 40, 510, 20),
        text("Beginning Balance", 100, 510, 80),
        right_aligned("$1,000.00", 480, 510, 45),

        text("1/05", 40, 494, 20),
        text("ATM Withdrawal", 100, 494, 70),
        right_aligned("$50.00", 360, 494, 30),
        right_aligned("$950.00", 480, 494, 35),
        text("MAIN ST BRANCH", 100, 484, 70, 8),

        text("1/12", 40, 466, 20),
        text("Deposit", 100, 466, 35),
        right_aligned("$25.00", 420, 466, 30),
        right_aligned("$975.00", 480, 466, 35),
    ]

    page2 = [
        text("Activity", 40, 740, 50, 12),
        text("Date", 40, 720, 25),
        text("Posted", 40, 710, 30),
        text("Description", 100, 710, 60),
        text("Debits", 330, 710, 30),
        text("Credits", 385, 710, 35),
        text("Balance", 440, 710, 40),

        text("1/20", 40, 690, 20),
        text("Monthly Service Fee", 100, 690, 90),
        right_aligned("$10.00", 360, 690, 30),
        right_aligned("$965.00", 480, 690, 35),

        text("1/31", 40, 674, 20),
        text("Ending Balance", 100, 674, 70),
        right_aligned("$965.00", 480, 674, 35),
    ]

    return statement(page1, page2)


def amex_statement(total_new_charges="$150.00", refund=None):
    summary_labels = [
        "Previous Balance", "Payments/Credits", "New Charges", "Fees", "Interest Charged",
        "New Balance", "Minimum Payment Due", "Credit Limit", "Available Credit",
        "Cash Advance Limit", "Available Cash",
    ]
    summary_values = [
        "$1,000.00", "-$200.00", "+$150.00", "$0.00", "$0.00", "$950.00",
        "$40.00", "$5,000.00", "$4,050.00", "$1,000.00", "$1,000.00",
    ]

    page1 = [
        text("JANE DOE", 400, 720, 60),
        text("Closing Date", 400, 706, 50),
        text("01/15/24", 460, 706, 40),
        text("Account Ending", 400, 692, 60),
        text("1-23456", 470, 692, 35),
    ]
    for row, (label, value) in enumerate(zip(summary_labels, summary_values)):
        y = 680 - row * 14
        page1.append(text(label, 40, y, 110))
        page1.append(right_aligned(value, 300, y, len(value) * 5))

    page1 += [
        text("Payments and Credits", 40, 500, 100),
        text("Total Payments and Credits", 40, 470, 120),
        right_aligned("-$200.00", 300, 470, 40),

        text("Payments", 40, 452, 40),
        text("01/05/24*", 40, 438, 45),
        text("JANE DOE", 90, 438, 40),
        text("AUTOPAY PAYMENT - THANK YOU", 140, 438, 115),
        right_aligned("-$150.00", 300, 438, 38),

        text("Credits", 40, 420, 35),
        text("01/08/24", 40, 406, 40),
        text("JANE DOE", 90, 406, 40),
        text("STORE RETURN", 140, 406, 70),
        right_aligned("-$50.00", 300, 406, 35),

        text("New Charges", 40, 380, 60),
        text("Total New Charges", 40, 366, 90),
        right_aligned(total_new_charges, 300, 366, 40),

        right_aligned("Amount", 300, 350, 35),
        text("01/10/24", 40, 336, 40),
        text("COFFEE SHOP", 90, 336, 60),
        text("SEATTLE", 160, 336, 40),
        text("WA", 210, 336, 12),
        right_aligned("$4.50", 300, 336, 25),
    ]

    page2 = [
        right_aligned("Amount", 300, 740, 35),
        text("01/12/24", 40, 726, 40),
        text("BOOKSTORE", 90, 726, 50),
        text("PORTLAND", 160, 726, 40),
        text("OR", 210, 726, 12),
        right_aligned("$145.50", 300, 726, 35),
    ]
    if refund is not None:
        page2 += [
            text("01/13/24", 40, 712, 40),
            text("STORE REFUND", 90, 712, 60),
            text("PORTLAND", 160, 712, 40),
            text("OR", 210, 712, 12),
            right_aligned(refund, 300, 712, 30),
        ]
    page2 += [
        text("Fees", 40, 700, 20),
        text("Interest Charged", 40, 680, 70),
    ]

    return statement(page1, page2)


def apple_card_statement(daily_cash_total="$9.50"):
    page1 = [
        right_aligned("Statement", 510, 750, 50),
        text("Jan 1", 400, 730, 25),
        right_aligned("Jan 31, 2024", 510, 730, 50),

        text("Your January Balance", 40, 700, 100),
        text("$475.00", 40, 680, 50),
        text("$25.00", 200, 680, 40),
        text("Feb 28, 2024", 350, 680, 60),
        text("Previous Total Balance", 350, 650, 100),
        text("$300.00", 480, 650, 40),

        text("Account Activity", 40, 600, 80),
        text("Total payments for this period", 40, 580, 150),
        text("-$300.00", 400, 580, 50),
        text("Total charges, credits, and returns for this period", 40, 566, 230),
        text("$475.00", 400, 566, 50),
        text("Total Daily Cash to account", 40, 552, 140),
        text(daily_cash_total, 400, 552, 50),
        text("Total interest for this month", 40, 538, 140),
        text("$0.00", 400, 538, 50),
    ]

    page2 = [
        text("Transactions by Jane Doe", 40, 740, 150),
        text("Date", 41, 720, 20),

        text("01/03/2024", 40, 700, 45),
        text("COFFEE SHOP SEATTLE WA", 100, 700, 120),
        text("2%", 300, 700, 15),
        text("$0.10", 350, 700, 25),
        text("$5.00", 450, 700, 25),

        text("01/10/2024", 40, 680, 45),
        text("HARDWARE STORE", 100, 680, 80),
        text("2%", 300, 680, 15),
        text("$10.00", 350, 680, 30),
        text("$500.00", 450, 680, 35),

        text("01/15/2024", 40, 660, 45),
        text("HARDWARE STORE RETURN", 100, 660, 100),
        text("-$30.00", 450, 660, 35),
        text("Daily Cash Adjustment", 100, 650, 90, 8),
        text("2%", 300, 650, 15, 8),
        text("-$0.60", 350, 650, 30, 8),
    ]

    return statement(page1, page2)
