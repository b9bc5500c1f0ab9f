from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Organizations(Base):
    __tablename__ = 'organizations'

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    timezone = Column(Text, nullable=False, server_default=text("'America/Bogota'"))
    booking_settings = Column(Text)  # JSON, see BookingConfig.from_mapping
    is_active = Column(Boolean, nullable=False, server_default=text('1'))

    profiles = relationship('Profiles', back_populates='organization')
    doctors = relationship('Doctors', back_populates='organization')
    services = relationship('Services', back_populates='organization')


class Profiles(Base):
    __tablename__ = 'profiles'

    id = Column(Text, primary_key=True)
    organization_id = Column(ForeignKey('organizations.id', ondelete='CASCADE'))
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    role = Column(Text, nullable=False, server_default=text("'patient'"))
    email = Column(Text)

    organization = relationship('Organizations', back_populates='profiles')
    doctor = relationship('Doctors', back_populates='profile', uselist=False)


class Doctors(Base):
    __tablename__ = 'doctors'

    id = Column(Text, primary_key=True)
    profile_id = Column(ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, unique=True)
    organization_id = Column(ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    specialization = Column(Text)
    consultation_fee = Column(Float)
    is_available = Column(Boolean, nullable=False, server_default=text('1'))

    organization = relationship('Organizations', back_populates='doctors')
    profile = relationship('Profiles', back_populates='doctor')
    availability = relationship('DoctorAvailability', back_populates='doctor')
    appointments = relationship('Appointments', back_populates='doctor')
    availability_blocks = relationship('AvailabilityBlocks', back_populates='doctor')


class Services(Base):
    __tablename__ = 'services'

    id = Column(Text, primary_key=True)
    organization_id = Column(ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False, server_default=text('30'))
    price = Column(Float)
    is_active = Column(Boolean, nullable=False, server_default=text('1'))

    organization = relationship('Organizations', back_populates='services')


class DoctorServices(Base):
    __tablename__ = 'doctor_services'
    __table_args__ = (
        UniqueConstraint('doctor_id', 'service_id'),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(ForeignKey('doctors.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)


class DoctorAvailability(Base):
    __tablename__ = 'doctor_availability'

    id = Column(Integer, primary_key=True)
    doctor_id = Column(ForeignKey('doctors.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(Text, nullable=False)  # "HH:MM" or "HH:MM:SS"
    end_time = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text('1'))

    doctor = relationship('Doctors', back_populates='availability')


class Appointments(Base):
    __tablename__ = 'appointments'

    id = Column(Text, primary_key=True)
    organization_id = Column(ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    doctor_id = Column(ForeignKey('doctors.id', ondelete='CASCADE'), nullable=False)
    patient_id = Column(ForeignKey('profiles.id', ondelete='SET NULL'))
    service_id = Column(ForeignKey('services.id'))
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    notes = Column(Text)

    doctor = relationship('Doctors', back_populates='appointments')


class AvailabilityBlocks(Base):
    __tablename__ = 'availability_blocks'

    id = Column(Integer, primary_key=True)
    doctor_id = Column(ForeignKey('doctors.id', ondelete='CASCADE'), nullable=False)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    block_type = Column(Text, nullable=False, server_default=text("'other'"))  # vacation / sick_leave / ...
    reason = Column(Text)

    doctor = relationship('Doctors', back_populates='availability_blocks')
