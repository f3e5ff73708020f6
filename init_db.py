"""
Script de inicialización de Base de Datos.

Crea las tablas e inserta los datos iniciales:
- Catálogo de assets por defecto (formas, sabores, coberturas, texturas,
  decoraciones, toppers y alturas)
- Usuarios de prueba: el administrador se crea aquí de forma explícita
"""
import asyncio
from pathlib import Path

# Cargar explícitamente las variables de entorno PRIMERO
import dotenv

env_path = Path(__file__).parent / ".env"
if env_path.exists():
    dotenv.load_dotenv(dotenv_path=env_path, override=True)
    print(f"✓ Cargado .env desde: {env_path}")
else:
    dotenv.load_dotenv(override=True)
    print("✓ Cargado .env desde ruta por defecto")

from sqlalchemy import func, select

from backend.database.connection import get_engine
from backend.database.models import Asset, Base, User
from backend.database.seed_data import USUARIOS_INICIALES, seed_assets, seed_users
from backend.database.session import get_session_factory


async def init_database():
    print("=" * 70)
    print(" INICIALIZACIÓN DE BASE DE DATOS")
    print(" Marketplace de pasteles personalizados")
    print("=" * 70)

    # 1. Obtener el motor de conexión
    engine = get_engine()

    # 2. Crear las tablas
    async with engine.begin() as conn:
        print("\n1. Creando tablas...")
        await conn.run_sync(Base.metadata.create_all)
        print(f"   ✓ Tablas: {', '.join(sorted(Base.metadata.tables))}")

    session_factory = get_session_factory()

    # 3. Catálogo
    inserted = await seed_assets(session_factory)
    if inserted:
        print(f"\n2. ✓ {inserted} assets insertados en el catálogo")
    else:
        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Asset))
        print(f"\n2. El catálogo ya tiene {count} assets. No se insertó nada.")

    # 4. Usuarios
    inserted = await seed_users(session_factory)
    if inserted:
        print(f"\n3. ✓ {inserted} usuarios creados")
    else:
        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(User))
        print(f"\n3. Ya existen {count} usuarios. No se insertó nada.")

    await engine.dispose()

    print("\n" + "=" * 70)
    print(" ✅ BASE DE DATOS INICIALIZADA CORRECTAMENTE")
    print("=" * 70)
    print("\n Usuarios de prueba (la sesión la emite el servicio de autenticación):")
    for usr in USUARIOS_INICIALES:
        print(f"   • {usr['username']} <{usr['email']}> (rol {usr['role']})")


if __name__ == "__main__":
    asyncio.run(init_database())
