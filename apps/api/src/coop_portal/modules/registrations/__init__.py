"""
Registrations Module

Cooperative registration workflow:
1. Applicant autosaves a single draft across the wizard steps
2. Steps are validated as the applicant goes; documents are checked at submit
3. Submission moves the draft to SUBMITTED with a REG-{year}-{seq} number
4. County staff start review, request more information, reject or approve
5. Approval registers the cooperative and makes the applicant its admin

API Endpoints:
- /registrations/... - Applicant wizard (router.py)
- /admin/applications/... - County review (admin_router.py)
"""
