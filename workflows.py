"""
workflows.py — Folio
The two illustrative library workflows shown on the workflow tab.

Static content only: nothing here is derived from the catalog.

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Branch:
    label:   str
    outcome: str
    tone:    str          # "bad" | "good"


@dataclass(frozen=True)
class WorkflowStep:
    title:    str
    caption:  str = ""
    branches: tuple[Branch, ...] = ()


@dataclass(frozen=True)
class Workflow:
    title:  str
    accent: str           # "blue" | "green"
    steps:  tuple[WorkflowStep, ...]


CHECKOUT = Workflow(
    title="Book Checkout Process",
    accent="blue",
    steps=(
        WorkflowStep("Member Request", "Member requests to borrow a book"),
        WorkflowStep("Check Availability", "`issue_book` procedure checks if book is available"),
        WorkflowStep("Book Issued", "Creates loan record and calls `after_loan_insert` trigger"),
        WorkflowStep("Available Copies Updated", "Trigger decrements available_copies in books table"),
    ),
)

RETURN = Workflow(
    title="Book Return Process",
    accent="green",
    steps=(
        WorkflowStep("Book Return", "Member returns a book"),
        WorkflowStep("Check Due Date", "`return_book` procedure checks if return is late"),
        WorkflowStep(
            "Late Return?",
            branches=(
                Branch("Yes", "Create Fine", "bad"),
                Branch("No", "No Fine", "good"),
            ),
        ),
        WorkflowStep("Update Loan Status", "Mark loan as returned, update return_date"),
        WorkflowStep("Update Book Availability", "`after_loan_update` trigger increments available_copies"),
    ),
)

WORKFLOWS: tuple[Workflow, ...] = (CHECKOUT, RETURN)
