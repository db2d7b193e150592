"""
Seed a local database with a demo organization and one pending workflow.
"""
from signoff.database import SessionLocal, engine, Base
from signoff.auth import get_password_hash
from signoff.models import Organization, User, ApprovalWorkflow, ApprovalStep, ApprovalComment, Activity

# Create tables
Base.metadata.create_all(bind=engine)

db = SessionLocal()

# Clear existing data
for model in (Activity, ApprovalComment, ApprovalStep, ApprovalWorkflow, User, Organization):
    db.query(model).delete()

organization = Organization(name="Construction Tremblay", slug="construction-tremblay")

password = get_password_hash("demo-password")
owner = User(
    email="marie@tremblay.example",
    hashed_password=password,
    full_name="Marie Tremblay",
    role="owner",
    organization=organization,
)
approvers = [
    User(
        email="luc@tremblay.example",
        hashed_password=password,
        full_name="Luc Bergeron",
        organization=organization,
    ),
    User(
        email="sarah@tremblay.example",
        hashed_password=password,
        full_name="Sarah Wilson",
        locale="en",
        organization=organization,
    ),
]

db.add_all([organization, owner, *approvers])
db.flush()

workflow = ApprovalWorkflow(
    organization_id=organization.id,
    resource_type="invoice",
    resource_id="FAC-2024-0042",
    name="Facture fournisseur béton",
    description="Livraison de béton pour le chantier Laval",
    required_approvers=2,
    created_by=owner.id,
    steps=[
        ApprovalStep(approver_id=user.id, step_order=position)
        for position, user in enumerate(approvers, start=1)
    ],
)
db.add(workflow)
db.commit()

print("Database seeded successfully!")
print(f"  - organization: {organization.name}")
print(f"  - {1 + len(approvers)} users (password: demo-password)")
print(f"  - workflow #{workflow.id} with {len(workflow.steps)} pending steps")

db.close()
