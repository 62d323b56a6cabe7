import logging
import uuid
from datetime import datetime

from models import CustomerAssignment

logger = logging.getLogger(__name__)

ASSIGNMENTS = "customer_assignments"


class CustomerAssignmentService:
    """Binds each customer to at most one salesperson at a time."""

    def __init__(self, store):
        self.store = store

    def _load(self):
        return self.store.load(ASSIGNMENTS, CustomerAssignment)

    def create(self, customer_id, salesperson_id):
        with self.store.lock(ASSIGNMENTS):
            assignments = self._load()
            if any(a.customer_id == customer_id for a in assignments):
                logger.warning(f"Customer {customer_id} is already assigned")
                return False
            assignments.append(CustomerAssignment(
                id=str(uuid.uuid4()),
                customer_id=customer_id,
                salesperson_id=salesperson_id,
                assigned_at=datetime.now(),
            ))
            self.store.save(ASSIGNMENTS, assignments)
        logger.info(f"Assigned customer {customer_id} to salesperson {salesperson_id}")
        return True

    def get_by_salesperson(self, salesperson_id):
        return [a for a in self._load() if a.salesperson_id == salesperson_id]

    def get_by_customer(self, customer_id):
        return next((a for a in self._load() if a.customer_id == customer_id), None)

    def count_by_salesperson(self, salesperson_id):
        return len(self.get_by_salesperson(salesperson_id))

    def list(self):
        return self._load()

    def transfer(self, customer_id, new_salesperson_id):
        with self.store.lock(ASSIGNMENTS):
            assignments = self._load()
            assignment = next((a for a in assignments if a.customer_id == customer_id), None)
            if assignment is None:
                logger.warning(f"Transfer of unassigned customer {customer_id}")
                return False
            old_salesperson_id = assignment.salesperson_id
            assignment.salesperson_id = new_salesperson_id
            assignment.assigned_at = datetime.now()
            self.store.save(ASSIGNMENTS, assignments)
        logger.info(
            f"Transferred customer {customer_id} from {old_salesperson_id} to {new_salesperson_id}"
        )
        return True

    def remove(self, customer_id):
        with self.store.lock(ASSIGNMENTS):
            assignments = self._load()
            remaining = [a for a in assignments if a.customer_id != customer_id]
            if len(remaining) == len(assignments):
                logger.warning(f"Removal of unassigned customer {customer_id}")
                return False
            self.store.save(ASSIGNMENTS, remaining)
        logger.info(f"Removed assignment of customer {customer_id}")
        return True
